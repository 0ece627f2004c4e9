"""
Database writer module - subscriptions, collection records and overrides.

All writes are upserts keyed by natural uniqueness constraints
(uprn; uprn + service_name; uprn + service_name + original_date), so running
them twice converges to the same state.
"""

import uuid
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone

import config
from doverbins.common.db import get_db_connection
from doverbins.models import ScrapedService


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def create_subscription(uprn: str, address: str, postcode: str) -> tuple[str, str]:
    """
    Create (or refresh the address of) a property subscription.
    Returns (subscription_id, calendar_token); an existing token is kept.
    """
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO subscriptions (id, uprn, address, postcode, calendar_token, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(uprn) DO UPDATE SET
            address = excluded.address,
            postcode = excluded.postcode
    """,
        (str(uuid.uuid4()), uprn, address, postcode, str(uuid.uuid4()), _now()),
    )
    cursor.execute("SELECT id, calendar_token FROM subscriptions WHERE uprn = ?", (uprn,))
    row = cursor.fetchone()
    conn.commit()
    conn.close()
    return row[0], row[1]


def upsert_collection(uprn: str, service_name: str, schedule: str, next_collection: date) -> None:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO collections (uprn, service_name, schedule, next_collection, fetched_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(uprn, service_name) DO UPDATE SET
            schedule = excluded.schedule,
            next_collection = excluded.next_collection,
            fetched_at = excluded.fetched_at
    """,
        (uprn, service_name, schedule, next_collection.isoformat(), _now()),
    )
    conn.commit()
    conn.close()


def mark_subscription_fetched(uprn: str) -> None:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute("UPDATE subscriptions SET last_fetched = ? WHERE uprn = ?", (_now(), uprn))
    conn.commit()
    conn.close()


def upsert_collections(uprn: str, services: Iterable[ScrapedService]) -> None:
    """Store freshly scraped services and stamp the subscription as fetched."""
    for service in services:
        upsert_collection(uprn, service.service_name, service.schedule, service.next_collection)
    mark_subscription_fetched(uprn)


def upsert_collection_override(
    uprn: str, service_name: str, original_date: date, actual_date: date
) -> None:
    """Record a holiday shift, superseding any earlier record for the same pattern date."""
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO collection_overrides (uprn, service_name, original_date, actual_date, detected_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(uprn, service_name, original_date) DO UPDATE SET
            actual_date = excluded.actual_date,
            detected_at = excluded.detected_at
    """,
        (uprn, service_name, original_date.isoformat(), actual_date.isoformat(), _now()),
    )
    conn.commit()
    conn.close()


def purge_expired_overrides(today: date | None = None, retention_days: int | None = None) -> int:
    """Delete overrides whose actual date is more than the retention period ago."""
    today = today or date.today()
    if retention_days is None:
        retention_days = config.OVERRIDE_RETENTION_DAYS
    cutoff = today - timedelta(days=retention_days)

    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        "DELETE FROM collection_overrides WHERE actual_date < ?",
        (cutoff.isoformat(),),
    )
    deleted = cursor.rowcount
    conn.commit()
    conn.close()
    return deleted


def delete_subscription_by_token(token: str) -> bool:
    """Remove a subscription with all of its collections and overrides."""
    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        cursor.execute("SELECT uprn FROM subscriptions WHERE calendar_token = ?", (token,))
        row = cursor.fetchone()
        if not row:
            return False
        uprn = row[0]
        cursor.execute("DELETE FROM collection_overrides WHERE uprn = ?", (uprn,))
        cursor.execute("DELETE FROM collections WHERE uprn = ?", (uprn,))
        cursor.execute("DELETE FROM subscriptions WHERE uprn = ?", (uprn,))
        conn.commit()
        return True
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def start_refresh_run() -> int:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute("INSERT INTO refresh_runs (started_at) VALUES (?)", (_now(),))
    run_id = cursor.lastrowid
    conn.commit()
    conn.close()
    return run_id


def finish_refresh_run(
    run_id: int, success_count: int, error_count: int, skipped_count: int, purged_count: int
) -> None:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        UPDATE refresh_runs
        SET finished_at = ?, success_count = ?, error_count = ?,
            skipped_count = ?, purged_count = ?
        WHERE id = ?
    """,
        (_now(), success_count, error_count, skipped_count, purged_count, run_id),
    )
    conn.commit()
    conn.close()
