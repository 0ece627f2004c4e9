from yoyo import step

steps = [
    step(
        """
        CREATE TABLE IF NOT EXISTS subscriptions (
            id TEXT PRIMARY KEY,
            uprn TEXT NOT NULL UNIQUE,
            address TEXT NOT NULL,
            postcode TEXT NOT NULL,
            calendar_token TEXT NOT NULL UNIQUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_fetched TIMESTAMP
        );
        """,
        "DROP TABLE IF EXISTS subscriptions;",
    ),
    step(
        """
        CREATE TABLE IF NOT EXISTS collections (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uprn TEXT NOT NULL,
            service_name TEXT NOT NULL,
            schedule TEXT,
            next_collection DATE NOT NULL,
            fetched_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(uprn, service_name)
        );
        """,
        "DROP TABLE IF EXISTS collections;",
    ),
    step(
        """
        CREATE TABLE IF NOT EXISTS collection_overrides (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uprn TEXT NOT NULL,
            service_name TEXT NOT NULL,
            original_date DATE NOT NULL,
            actual_date DATE NOT NULL,
            detected_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(uprn, service_name, original_date)
        );
        """,
        "DROP TABLE IF EXISTS collection_overrides;",
    ),
    step(
        "CREATE INDEX IF NOT EXISTS idx_subscriptions_token ON subscriptions(calendar_token);",
        "DROP INDEX IF EXISTS idx_subscriptions_token;",
    ),
    step(
        "CREATE INDEX IF NOT EXISTS idx_collections_uprn ON collections(uprn);",
        "DROP INDEX IF EXISTS idx_collections_uprn;",
    ),
    step(
        """
        CREATE INDEX IF NOT EXISTS idx_overrides_lookup
        ON collection_overrides(uprn, actual_date);
        """,
        "DROP INDEX IF EXISTS idx_overrides_lookup;",
    ),
]
