"""
Daily refresh: re-scrape every subscribed property and detect holiday shifts.

For each service the newly published next collection is compared with the
date the pattern predicted after the previously stored one. A difference of a
day or more is stored as an override (pattern date -> actual date), which the
calendar feed folds into its projection. Properties are processed one at a
time with a delay between council requests; one property failing never stops
the run.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta

import config
from doverbins.api.db import get_all_subscriptions, get_collections, get_override_original
from doverbins.calendar.patterns import parse_schedule
from doverbins.calendar.projector import expected_next_collection
from doverbins.common.throttle import throttle
from doverbins.models import CollectionRecord, ScrapedService, Subscription
from doverbins.refresh.db_writer import (
    finish_refresh_run,
    mark_subscription_fetched,
    purge_expired_overrides,
    start_refresh_run,
    upsert_collection,
    upsert_collection_override,
)
from doverbins.scraper.client import scrape_property_collections

logger = logging.getLogger(__name__)

PENDING = "pending"
SUCCESS = "success"
ERROR = "error"
SKIPPED = "skipped"

Scraper = Callable[[str], list[ScrapedService]]


@dataclass(frozen=True)
class DetectedOverride:
    service_name: str
    original_date: date
    actual_date: date


@dataclass
class PropertyOutcome:
    uprn: str
    status: str = PENDING
    overrides: list[DetectedOverride] = field(default_factory=list)
    error: str | None = None


@dataclass
class RefreshSummary:
    outcomes: list[PropertyOutcome] = field(default_factory=list)
    purged_count: int = 0

    def _count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def success_count(self) -> int:
        return self._count(SUCCESS)

    @property
    def error_count(self) -> int:
        return self._count(ERROR)

    @property
    def skipped_count(self) -> int:
        return self._count(SKIPPED)

    def __str__(self) -> str:
        return f"Refresh complete: {self.success_count} success, {self.error_count} errors"


def detect_override(
    previous: CollectionRecord | None,
    observed: ScrapedService,
    shifted_from: date | None = None,
) -> DetectedOverride | None:
    """
    Compare a fresh observation with the stored record for the same service.

    Nothing is detected until the council has moved on to a new next
    collection; the published date then has to match the pattern date that
    follows the stored one. shifted_from is the pattern date the stored one
    replaced, when it was itself an override.
    """
    if previous is None or observed.next_collection == previous.next_collection:
        return None

    expected = expected_next_collection(
        previous.next_collection, previous.schedule, shifted_from=shifted_from
    )
    interval = parse_schedule(previous.schedule).interval_days
    drift = (observed.next_collection - expected).days
    # On pattern, or whole intervals off when refreshes were missed
    if drift % interval == 0:
        return None
    # After missed refreshes the moved collection is the last pattern date before it
    if drift > interval:
        expected += timedelta(days=(drift // interval) * interval)
    return DetectedOverride(
        service_name=observed.service_name,
        original_date=expected,
        actual_date=observed.next_collection,
    )


def refresh_property(subscription: Subscription, scrape: Scraper) -> PropertyOutcome:
    outcome = PropertyOutcome(uprn=subscription.uprn)
    services = scrape(subscription.uprn)
    if not services:
        logger.warning("No services found for UPRN %s", subscription.uprn)
        outcome.status = SKIPPED
        return outcome

    existing = {record.service_name: record for record in get_collections(subscription.uprn)}
    for service in services:
        previous = existing.get(service.service_name)
        shifted_from = None
        if previous and previous.next_collection != service.next_collection:
            shifted_from = get_override_original(
                subscription.uprn, previous.service_name, previous.next_collection
            )
        detected = detect_override(previous, service, shifted_from)
        if detected:
            logger.info(
                "Holiday adjustment detected for %s (UPRN %s): expected %s, got %s",
                detected.service_name,
                subscription.uprn,
                detected.original_date.isoformat(),
                detected.actual_date.isoformat(),
            )
            upsert_collection_override(
                subscription.uprn,
                detected.service_name,
                detected.original_date,
                detected.actual_date,
            )
            outcome.overrides.append(detected)

        upsert_collection(
            subscription.uprn, service.service_name, service.schedule, service.next_collection
        )

    mark_subscription_fetched(subscription.uprn)
    outcome.status = SUCCESS
    return outcome


def run_refresh(
    scrape: Scraper = scrape_property_collections,
    today: date | None = None,
    delay_seconds: float | None = None,
) -> RefreshSummary:
    """Refresh every subscription sequentially, then purge old overrides."""
    if delay_seconds is None:
        delay_seconds = config.REFRESH_DELAY_SECONDS

    subscriptions = get_all_subscriptions()
    logger.info("Found %s subscriptions to refresh", len(subscriptions))
    run_id = start_refresh_run()
    summary = RefreshSummary()

    for subscription in subscriptions:
        logger.debug("Refreshing data for UPRN %s", subscription.uprn)
        throttle("council", delay_seconds)
        try:
            outcome = refresh_property(subscription, scrape)
        except Exception as e:
            logger.exception("Error refreshing UPRN %s: %s", subscription.uprn, e)
            outcome = PropertyOutcome(uprn=subscription.uprn, status=ERROR, error=str(e))
        summary.outcomes.append(outcome)

    summary.purged_count = purge_expired_overrides(today=today)
    if summary.purged_count:
        logger.info("Purged %s expired overrides", summary.purged_count)

    finish_refresh_run(
        run_id,
        summary.success_count,
        summary.error_count,
        summary.skipped_count,
        summary.purged_count,
    )
    logger.info("%s (%s skipped)", summary, summary.skipped_count)
    return summary
