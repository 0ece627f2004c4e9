"""
Turns per-service occurrences into one calendar event per bin day.

All services collected on the same day share a single all-day event, which
is classified by the most significant bin going out. Food waste is collected
every week alongside the other bins, so it never gets a day of its own and is
added to any day it drifted away from (e.g. when only the other service was
moved for a bank holiday).
"""

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

import config
from doverbins.calendar.projector import ProjectedOccurrence
from doverbins.calendar.services import (
    FOOD,
    GARDEN,
    GENERAL,
    KIND_ORDER,
    RECYCLING,
    is_food_service,
    service_info,
    service_kind,
)

STREAM_COMBINED = "combined"
STREAM_RECYCLING = "recycling"
STREAM_GENERAL = "general"
FILTER_CATEGORIES = (STREAM_RECYCLING, STREAM_GENERAL)

CHANGED_DATE_NOTE = "Note: This collection date was changed, likely due to a bank holiday."


@dataclass(frozen=True)
class ServiceOccurrences:
    service_name: str
    occurrences: list[ProjectedOccurrence]


@dataclass
class DayGroup:
    date: date
    services: list[str] = field(default_factory=list)
    is_override: bool = False

    def kinds(self) -> set[str]:
        return {service_kind(name) for name in self.services}

    def add(self, service_name: str, is_override: bool = False) -> None:
        if service_name not in self.services:
            self.services.append(service_name)
        self.is_override = self.is_override or is_override


@dataclass(frozen=True)
class Classification:
    label: str
    color: str


RECYCLING_DAY = Classification("Recycling", "forestgreen")
GENERAL_DAY = Classification("General Waste", "dimgray")
GARDEN_DAY = Classification("Garden", "saddlebrown")
BIN_DAY = Classification("Bin Day", "steelblue")


@dataclass(frozen=True)
class CalendarEvent:
    uid: str
    date: date
    summary: str
    description: str
    category: str
    color: str
    services: tuple[str, ...]
    is_override: bool = False


def _ordered(services: Iterable[str]) -> list[str]:
    return sorted(services, key=lambda name: (KIND_ORDER[service_kind(name)], name))


def group_by_day(service_occurrences: Iterable[ServiceOccurrences]) -> list[DayGroup]:
    """Merge all services' occurrences into day groups, ascending by date."""
    groups: dict[date, DayGroup] = {}
    for service in service_occurrences:
        for occurrence in service.occurrences:
            group = groups.setdefault(occurrence.date, DayGroup(date=occurrence.date))
            group.add(service.service_name, occurrence.is_override)

    for group in groups.values():
        group.services = _ordered(group.services)
    return [groups[day] for day in sorted(groups)]


def reconcile_food(groups: list[DayGroup], food_service: str | None) -> list[DayGroup]:
    """Drop food-only days and add food to every other day."""
    reconciled = []
    for group in groups:
        kinds = group.kinds()
        if kinds == {FOOD}:
            continue
        if food_service and FOOD not in kinds:
            group = DayGroup(
                date=group.date,
                services=_ordered([*group.services, food_service]),
                is_override=group.is_override,
            )
        reconciled.append(group)
    return reconciled


def classify(group: DayGroup) -> Classification:
    kinds = group.kinds()
    if RECYCLING in kinds:
        return RECYCLING_DAY
    if GENERAL in kinds:
        return GENERAL_DAY
    if GARDEN in kinds:
        return GARDEN_DAY
    return BIN_DAY


def filter_groups(groups: list[DayGroup], category: str | None) -> list[DayGroup]:
    """Keep only days carrying the primary bin of a filtered feed."""
    if category in (None, STREAM_COMBINED):
        return groups
    if category not in FILTER_CATEGORIES:
        raise ValueError(f"Unknown calendar filter: {category!r}")
    wanted = RECYCLING if category == STREAM_RECYCLING else GENERAL
    return [group for group in groups if wanted in group.kinds()]


def hash_uprn(uprn: str) -> str:
    return hashlib.sha256(uprn.encode("utf-8")).hexdigest()[:12]


def event_uid(uprn: str, stream: str, day: date, domain: str | None = None) -> str:
    """
    Stable event UID. The property is only present as a hash, so feeds never
    expose the UPRN, and the stream keeps combined and filtered feeds apart.
    """
    domain = domain or config.CALENDAR_DOMAIN
    return f"{stream}-{hash_uprn(uprn)}-{day.strftime('%Y%m%d')}@{domain}"


def _summary(group: DayGroup) -> str:
    names = " + ".join(service_info(name).short_name for name in group.services)
    if group.is_override:
        return f"{names} (changed date)"
    return names


def _description(group: DayGroup) -> str:
    lines = [service_info(name).description for name in group.services]
    text = "\n".join(lines)
    if group.is_override:
        text = f"{text}\n\n{CHANGED_DATE_NOTE}"
    return text


def build_events(
    service_occurrences: Iterable[ServiceOccurrences],
    uprn: str,
    category: str | None = None,
    domain: str | None = None,
) -> list[CalendarEvent]:
    """One event per collection day for a property, optionally filtered."""
    service_occurrences = list(service_occurrences)
    stream = category or STREAM_COMBINED

    food_service = next(
        (s.service_name for s in service_occurrences if is_food_service(s.service_name)),
        None,
    )
    groups = reconcile_food(group_by_day(service_occurrences), food_service)
    groups = filter_groups(groups, category)

    events = []
    for group in groups:
        classification = classify(group)
        events.append(
            CalendarEvent(
                uid=event_uid(uprn, stream, group.date, domain),
                date=group.date,
                summary=_summary(group),
                description=_description(group),
                category=classification.label,
                color=classification.color,
                services=tuple(group.services),
                is_override=group.is_override,
            )
        )
    return events
