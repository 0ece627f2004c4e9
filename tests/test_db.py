"""
Tests for subscription, collection and override storage
"""
from datetime import date

from doverbins.api.db import (
    get_all_subscriptions,
    get_collection_overrides,
    get_collections,
    get_latest_refresh_run,
    get_override_map,
    get_override_original,
    get_shift_anchors,
    get_subscription_by_token,
)
from doverbins.models import ScrapedService
from doverbins.refresh.db_writer import (
    create_subscription,
    delete_subscription_by_token,
    finish_refresh_run,
    purge_expired_overrides,
    start_refresh_run,
    upsert_collection,
    upsert_collection_override,
    upsert_collections,
)

UPRN = "100060000001"


def test_create_subscription_keeps_token(temp_db):
    sub_id, token = create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    again_id, again_token = create_subscription(UPRN, "1 Example Road, Dover", "CT16 1AA")

    assert (again_id, again_token) == (sub_id, token)
    subscription = get_subscription_by_token(token)
    assert subscription.uprn == UPRN
    assert subscription.address == "1 Example Road, Dover"
    assert subscription.created_at is not None
    assert len(get_all_subscriptions()) == 1


def test_unknown_token(temp_db):
    assert get_subscription_by_token("0d9c5a52-7777-4888-9999-aaaabbbbcccc") is None


def test_upsert_collections(temp_db):
    _, token = create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    upsert_collections(
        UPRN,
        [
            ScrapedService("Refuse Collection", "Tuesday fortnightly", date(2026, 1, 13)),
            ScrapedService("Food Collection", "Tuesday every week", date(2026, 1, 6)),
        ],
    )
    upsert_collection(UPRN, "Refuse Collection", "Tuesday fortnightly", date(2026, 1, 27))

    collections = {record.service_name: record for record in get_collections(UPRN)}
    assert set(collections) == {"Refuse Collection", "Food Collection"}
    assert collections["Refuse Collection"].next_collection == date(2026, 1, 27)
    assert collections["Food Collection"].schedule == "Tuesday every week"
    assert get_subscription_by_token(token).last_fetched is not None


def test_override_upsert_is_idempotent(temp_db):
    create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    upsert_collection_override(UPRN, "Refuse Collection", date(2025, 12, 25), date(2025, 12, 27))
    upsert_collection_override(UPRN, "Refuse Collection", date(2025, 12, 25), date(2025, 12, 29))

    overrides = get_collection_overrides(UPRN, today=date(2025, 12, 1))
    assert len(overrides) == 1
    assert overrides[0].actual_date == date(2025, 12, 29)
    assert get_override_map(UPRN, today=date(2025, 12, 1)) == {
        "Refuse Collection": {"2025-12-25": date(2025, 12, 29)}
    }
    assert get_override_original(UPRN, "Refuse Collection", date(2025, 12, 29)) == date(2025, 12, 25)
    assert get_override_original(UPRN, "Food Collection", date(2025, 12, 29)) is None


def test_only_current_overrides_loaded(temp_db):
    create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    upsert_collection_override(UPRN, "Refuse Collection", date(2025, 12, 25), date(2025, 12, 29))
    upsert_collection_override(UPRN, "Refuse Collection", date(2026, 4, 3), date(2026, 4, 4))

    assert get_override_map(UPRN, today=date(2026, 1, 5)) == {
        "Refuse Collection": {"2026-04-03": date(2026, 4, 4)}
    }


def test_purge_expired_overrides(temp_db):
    create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    upsert_collection_override(UPRN, "Refuse Collection", date(2024, 12, 25), date(2024, 12, 27))
    upsert_collection_override(UPRN, "Refuse Collection", date(2025, 3, 1), date(2025, 3, 3))

    deleted = purge_expired_overrides(today=date(2026, 1, 5))

    assert deleted == 1
    remaining = get_collection_overrides(UPRN, today=date(2000, 1, 1))
    assert [override.actual_date for override in remaining] == [date(2025, 3, 3)]


def test_delete_subscription_removes_everything(temp_db):
    conn, _ = temp_db
    _, token = create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    upsert_collection(UPRN, "Refuse Collection", "Tuesday fortnightly", date(2026, 1, 13))
    upsert_collection_override(UPRN, "Refuse Collection", date(2025, 12, 25), date(2025, 12, 29))

    assert delete_subscription_by_token(token) is True
    assert delete_subscription_by_token(token) is False

    cursor = conn.cursor()
    for table in ("subscriptions", "collections", "collection_overrides"):
        cursor.execute(f"SELECT COUNT(*) FROM {table}")
        assert cursor.fetchone()[0] == 0


def test_refresh_run_bookkeeping(temp_db):
    assert get_latest_refresh_run() is None
    run_id = start_refresh_run()
    finish_refresh_run(run_id, 3, 1, 2, 4)

    run = get_latest_refresh_run()
    assert run["id"] == run_id
    assert run["finished_at"] is not None
    assert (run["success_count"], run["error_count"], run["skipped_count"], run["purged_count"]) == (3, 1, 2, 4)


def test_shift_anchors_match_stored_next_collection(temp_db):
    create_subscription(UPRN, "1 Example Road", "CT16 1AA")
    upsert_collection(UPRN, "Refuse Collection", "Thursday fortnightly", date(2025, 12, 29))
    upsert_collection(UPRN, "Food Collection", "Thursday weekly", date(2026, 1, 1))
    upsert_collection_override(UPRN, "Refuse Collection", date(2025, 12, 25), date(2025, 12, 29))
    upsert_collection_override(UPRN, "Food Collection", date(2025, 12, 25), date(2025, 12, 27))

    assert get_shift_anchors(UPRN) == {"Refuse Collection": date(2025, 12, 25)}
