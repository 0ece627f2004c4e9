"""
Schema migrations (yoyo step files under doverbins/migrations).
"""

import logging
from pathlib import Path

from yoyo import get_backend, read_migrations

from doverbins.common.db import get_db_path

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

logger = logging.getLogger(__name__)


def apply_migrations(db_path: Path | str, migrations_dir: Path = MIGRATIONS_DIR) -> int:
    """Apply pending migrations to the SQLite database at db_path. Returns how many ran."""
    backend = get_backend(f"sqlite:///{Path(db_path).resolve()}")
    migrations = read_migrations(str(migrations_dir))
    with backend.lock():
        pending = backend.to_apply(migrations)
        backend.apply_migrations(pending)
    if len(pending):
        logger.info("Applied %s migration(s) to %s", len(pending), db_path)
    return len(pending)


def init_database(migrations_dir: Path = MIGRATIONS_DIR) -> Path:
    """Create the SQLite database if needed and bring its schema up to date."""
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    apply_migrations(db_path, migrations_dir)
    return db_path


if __name__ == "__main__":
    from doverbins.common.logging_utils import setup_logging

    setup_logging()
    print(f"Database ready at {init_database()}")
