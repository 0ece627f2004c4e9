"""
Database query functions for the API (read side).
"""

from datetime import date, datetime

from doverbins.calendar.projector import date_key
from doverbins.common.db import get_db_connection
from doverbins.models import CollectionRecord, OverrideRecord, Subscription


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_timestamp(value) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _subscription_from_row(row) -> Subscription:
    return Subscription(
        id=row[0],
        uprn=row[1],
        address=row[2],
        postcode=row[3],
        calendar_token=row[4],
        created_at=_parse_timestamp(row[5]),
        last_fetched=_parse_timestamp(row[6]),
    )


def get_subscription_by_token(token: str) -> Subscription | None:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, uprn, address, postcode, calendar_token, created_at, last_fetched
        FROM subscriptions
        WHERE calendar_token = ?
    """,
        (token,),
    )
    row = cursor.fetchone()
    conn.close()
    return _subscription_from_row(row) if row else None


def get_all_subscriptions() -> list[Subscription]:
    """All subscriptions, oldest first (refresh order)."""
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, uprn, address, postcode, calendar_token, created_at, last_fetched
        FROM subscriptions
        ORDER BY created_at, rowid
    """
    )
    results = [_subscription_from_row(row) for row in cursor.fetchall()]
    conn.close()
    return results


def get_collections(uprn: str) -> list[CollectionRecord]:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT uprn, service_name, schedule, next_collection, fetched_at
        FROM collections
        WHERE uprn = ?
        ORDER BY service_name
    """,
        (uprn,),
    )
    results = [
        CollectionRecord(
            uprn=row[0],
            service_name=row[1],
            schedule=row[2] or "",
            next_collection=_parse_date(row[3]),
            fetched_at=_parse_timestamp(row[4]),
        )
        for row in cursor.fetchall()
    ]
    conn.close()
    return results


def get_collection_overrides(uprn: str, today: date | None = None) -> list[OverrideRecord]:
    """Overrides whose actual date is today or later."""
    today = today or date.today()
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT uprn, service_name, original_date, actual_date, detected_at
        FROM collection_overrides
        WHERE uprn = ?
          AND actual_date >= ?
        ORDER BY actual_date
    """,
        (uprn, today.isoformat()),
    )
    results = [
        OverrideRecord(
            uprn=row[0],
            service_name=row[1],
            original_date=_parse_date(row[2]),
            actual_date=_parse_date(row[3]),
            detected_at=_parse_timestamp(row[4]),
        )
        for row in cursor.fetchall()
    ]
    conn.close()
    return results


def get_override_map(uprn: str, today: date | None = None) -> dict[str, dict[str, date]]:
    """
    Overrides for a property as {service_name: {original date key: actual date}}.
    """
    override_map: dict[str, dict[str, date]] = {}
    for override in get_collection_overrides(uprn, today=today):
        override_map.setdefault(override.service_name, {})[
            date_key(override.original_date)
        ] = override.actual_date
    return override_map


def get_latest_refresh_run() -> dict | None:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT id, started_at, finished_at, success_count, error_count, skipped_count, purged_count
        FROM refresh_runs
        ORDER BY id DESC
        LIMIT 1
    """
    )
    row = cursor.fetchone()
    conn.close()
    if not row:
        return None
    return {
        "id": row[0],
        "started_at": row[1],
        "finished_at": row[2],
        "success_count": row[3],
        "error_count": row[4],
        "skipped_count": row[5],
        "purged_count": row[6],
    }


def get_override_original(uprn: str, service_name: str, actual_date: date) -> date | None:
    """Pattern date that was moved onto actual_date for this service, if any."""
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT original_date
        FROM collection_overrides
        WHERE uprn = ? AND service_name = ? AND actual_date = ?
        ORDER BY detected_at DESC
        LIMIT 1
    """,
        (uprn, service_name, actual_date.isoformat()),
    )
    row = cursor.fetchone()
    conn.close()
    return _parse_date(row[0]) if row else None


def get_shift_anchors(uprn: str) -> dict[str, date]:
    """
    {service_name: original pattern date} for services whose stored next
    collection is the actual date of an override. Not limited to current
    overrides: the stored date can already be in the past before the next
    refresh replaces it.
    """
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT c.service_name, o.original_date
        FROM collections c
        JOIN collection_overrides o
          ON o.uprn = c.uprn
         AND o.service_name = c.service_name
         AND o.actual_date = c.next_collection
        WHERE c.uprn = ?
        ORDER BY o.detected_at
    """,
        (uprn,),
    )
    anchors = {row[0]: _parse_date(row[1]) for row in cursor.fetchall()}
    conn.close()
    return anchors
