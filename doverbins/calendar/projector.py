"""
Projection of future collection dates from a single known collection.

The council only publishes the *next* collection for each service. From that
date and the schedule text we rebuild the recurrence: when the known date does
not fall on the scheduled weekday it is treated as a holiday shift, and the
rest of the series continues from the pattern ("anchor") date it replaced.

Example: next collection Mon 29 Dec (moved from Fri 26 Dec), "Friday fortnightly"
gives Dec 29 (changed), Jan 9, Jan 23, Feb 6, ...
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from doverbins.calendar.patterns import day_of_week, parse_schedule

DEFAULT_HORIZON_MONTHS = 3

# Upper bound on steps taken for one projection (~4 years at a weekly cadence)
MAX_STEPS = 200


@dataclass(frozen=True)
class ProjectedOccurrence:
    date: date
    is_override: bool = False


def date_key(value: date) -> str:
    """YYYY-MM-DD key used for override lookups."""
    return value.isoformat()


def find_anchor_date(from_date: date, weekday: int) -> date:
    """
    Nearest date to from_date that falls on weekday (0 = Sunday).
    from_date itself when it already matches; the earlier date wins a tie.
    """
    current = day_of_week(from_date)
    if current == weekday:
        return from_date

    days_to_prev = (current - weekday) % 7
    days_to_next = (weekday - current) % 7
    if days_to_prev <= days_to_next:
        return from_date - timedelta(days=days_to_prev)
    return from_date + timedelta(days=days_to_next)


def _step_through(
    start: date, interval: timedelta, today: date, end_date: date, steps_taken: int = 0
) -> list[ProjectedOccurrence]:
    results = []
    current = start
    steps = steps_taken

    while current < today and steps < MAX_STEPS:
        current += interval
        steps += 1

    while current <= end_date and steps < MAX_STEPS:
        results.append(ProjectedOccurrence(date=current))
        current += interval
        steps += 1

    return results


def project_occurrences(
    known_date: date,
    schedule: str | None,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
    today: date | None = None,
    shifted_from: date | None = None,
) -> list[ProjectedOccurrence]:
    """
    Future occurrences (today included) up to today + horizon_months.

    shifted_from is the pattern date a shifted known_date is known to replace
    (from a stored override). Without it the nearest scheduled weekday is
    assumed, which is only right for shifts of up to three days.

    Output is strictly ascending with no duplicates. Malformed schedule text
    never raises; it falls back to a weekly, interval-only projection.
    """
    today = today or date.today()
    end_date = today + relativedelta(months=horizon_months)
    rule = parse_schedule(schedule)
    interval = timedelta(days=rule.interval_days)

    if not rule.has_anchor:
        return _step_through(known_date, interval, today, end_date)

    is_shifted = day_of_week(known_date) != rule.anchor_weekday
    if not is_shifted:
        anchor_date = known_date
    elif shifted_from is not None:
        anchor_date = shifted_from
    else:
        anchor_date = find_anchor_date(known_date, rule.anchor_weekday)

    results = []
    if known_date >= today:
        results.append(ProjectedOccurrence(date=known_date, is_override=is_shifted))

    # The anchor slot itself is represented by known_date, shifted or not
    for occurrence in _step_through(anchor_date + interval, interval, today, end_date):
        if occurrence.date > known_date:
            results.append(occurrence)
    return results


def expected_next_collection(
    stored_date: date, schedule: str | None, shifted_from: date | None = None
) -> date:
    """
    Pattern date one interval after the collection on stored_date.

    For an on-pattern stored_date this is stored_date + interval. A shifted
    stored_date is first moved back to its anchor (shifted_from when known)
    so the result stays on the unshifted recurrence.
    """
    rule = parse_schedule(schedule)
    base = stored_date
    if shifted_from is not None:
        base = shifted_from
    elif rule.has_anchor:
        base = find_anchor_date(stored_date, rule.anchor_weekday)
    return base + timedelta(days=rule.interval_days)


def apply_overrides(
    projected: Iterable[ProjectedOccurrence], overrides: Mapping[str, date]
) -> list[ProjectedOccurrence]:
    """
    Replace occurrences whose date has a stored override with the actual date.

    overrides maps date_key(original pattern date) -> actual date. An override
    always marks the occurrence as changed, whatever the projector said.
    """
    applied = []
    for occurrence in projected:
        actual = overrides.get(date_key(occurrence.date))
        if actual is None:
            applied.append(occurrence)
        else:
            applied.append(replace(occurrence, date=actual, is_override=True))
    return applied
