"""
Pytest fixtures for testing
"""
import os
import sqlite3
import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing and patch get_db_connection to use it"""
    from unittest.mock import patch
    import doverbins.api.db as api_db_module
    import doverbins.refresh.db_writer as db_writer_module
    from doverbins.common.migrations import apply_migrations

    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)
    apply_migrations(db_path)
    conn = sqlite3.connect(db_path)

    def mock_get_conn():
        return sqlite3.connect(db_path, check_same_thread=False)

    # Patch get_db_connection in all modules that use it
    with patch.object(api_db_module, "get_db_connection", mock_get_conn), \
         patch.object(db_writer_module, "get_db_connection", mock_get_conn):
        yield conn, db_path

    conn.close()
    os.unlink(db_path)


@pytest.fixture(autouse=True)
def disable_throttle_env():
    os.environ.setdefault("THROTTLE_DISABLED", "1")
    yield


@pytest.fixture
def property_page_html():
    """Property page as rendered by the council site"""
    return (FIXTURES_DIR / "property_page.html").read_text(encoding="utf-8")


@pytest.fixture
def address_results_html():
    """HTML fragment returned in the `result` field of a postcode search"""
    return (FIXTURES_DIR / "address_results.html").read_text(encoding="utf-8")
