"""
Calendar feed assembly for one subscribed property.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime

import config
from doverbins.calendar.ical import render_calendar
from doverbins.calendar.materializer import (
    STREAM_GENERAL,
    STREAM_RECYCLING,
    ServiceOccurrences,
    build_events,
)
from doverbins.calendar.projector import apply_overrides, project_occurrences
from doverbins.models import CollectionRecord, Subscription


def calendar_name(postcode: str, category: str | None = None) -> str:
    # Postcode only, never the full address
    if category == STREAM_RECYCLING:
        return f"Recycling Bins - {postcode}"
    if category == STREAM_GENERAL:
        return f"General Waste Bins - {postcode}"
    return f"Bin Collection - {postcode}"


def calendar_filename(postcode: str, category: str | None = None) -> str:
    safe_postcode = "".join(postcode.split())
    if category == STREAM_RECYCLING:
        return f"recycling-{safe_postcode}.ics"
    if category == STREAM_GENERAL:
        return f"general-waste-{safe_postcode}.ics"
    return f"bins-{safe_postcode}.ics"


def shifted_from(overrides: Mapping[str, date], actual_date: date) -> date | None:
    """Pattern date a stored override moved onto actual_date, if there is one."""
    for original_key, actual in overrides.items():
        if actual == actual_date:
            return date.fromisoformat(original_key)
    return None


def project_services(
    collections: Iterable[CollectionRecord],
    override_map: Mapping[str, Mapping[str, date]],
    today: date | None = None,
    horizon_months: int | None = None,
    shift_anchors: Mapping[str, date] | None = None,
) -> list[ServiceOccurrences]:
    """
    Project each service from its stored next collection, then fold in stored
    overrides. Overrides detected by the daily refresh show up here even before
    the stored next collection reflects them.

    shift_anchors maps service name to the pattern date its stored next
    collection replaced (see get_shift_anchors); otherwise the anchor is looked
    up in override_map, which only holds current overrides.
    """
    shift_anchors = shift_anchors or {}
    horizon_months = horizon_months or config.CALENDAR_HORIZON_MONTHS
    projected = []
    for collection in collections:
        overrides = override_map.get(collection.service_name, {})
        occurrences = project_occurrences(
            collection.next_collection,
            collection.schedule,
            horizon_months,
            today=today,
            shifted_from=shift_anchors.get(collection.service_name)
            or shifted_from(overrides, collection.next_collection),
        )
        occurrences = apply_overrides(occurrences, overrides)
        projected.append(ServiceOccurrences(collection.service_name, occurrences))
    return projected


def generate_feed(
    subscription: Subscription,
    collections: Iterable[CollectionRecord],
    override_map: Mapping[str, Mapping[str, date]],
    category: str | None = None,
    today: date | None = None,
    generated_at: datetime | None = None,
    shift_anchors: Mapping[str, date] | None = None,
) -> str:
    services = project_services(
        collections, override_map, today=today, shift_anchors=shift_anchors
    )
    events = build_events(services, subscription.uprn, category=category)
    return render_calendar(
        events,
        calendar_name(subscription.postcode, category),
        generated_at=generated_at,
    )
