"""
Tests for schema migrations
"""
import sqlite3

from doverbins.common.migrations import apply_migrations


def test_migrations_create_tables(tmp_path):
    db_path = tmp_path / "doverbins.db"
    applied = apply_migrations(db_path)

    assert applied >= 2
    conn = sqlite3.connect(db_path)
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    conn.close()
    assert {"subscriptions", "collections", "collection_overrides", "refresh_runs"} <= tables


def test_migrations_are_idempotent(tmp_path):
    db_path = tmp_path / "doverbins.db"
    apply_migrations(db_path)
    assert apply_migrations(db_path) == 0
