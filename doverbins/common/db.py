"""
Shared DB connection helpers.
"""

import sqlite3
from pathlib import Path

import config


def get_db_path() -> Path:
    return Path(config.DB_PATH)


def get_db_connection():
    """Get a database connection."""
    db_path = get_db_path()
    if not db_path.exists():
        raise FileNotFoundError(
            f"Database not found at {db_path}. Run `python -m doverbins.common.migrations` first."
        )
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    return conn
