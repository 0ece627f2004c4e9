from yoyo import step

steps = [
    step(
        """
        CREATE TABLE IF NOT EXISTS refresh_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            started_at TIMESTAMP NOT NULL,
            finished_at TIMESTAMP,
            success_count INTEGER DEFAULT 0,
            error_count INTEGER DEFAULT 0,
            skipped_count INTEGER DEFAULT 0,
            purged_count INTEGER DEFAULT 0
        );
        """,
        "DROP TABLE IF EXISTS refresh_runs;",
    ),
]
