"""
Schedule text interpretation.

The council describes each service with short phrases such as
"Tuesday fortnightly", "Every Tuesday" or "Wednesday weekly". This is keyword
matching, not a grammar: anything unrecognised falls back to a weekly cadence
and, without a weekday name, to legacy (interval-only) projection.
"""

from dataclasses import dataclass
from datetime import date

WEEKLY_DAYS = 7
FORTNIGHTLY_DAYS = 14

# 0 = Sunday ... 6 = Saturday, scanned in this order
WEEKDAY_NAMES = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)


@dataclass(frozen=True)
class RecurrenceRule:
    interval_days: int
    anchor_weekday: int | None

    @property
    def has_anchor(self) -> bool:
        return self.anchor_weekday is not None


def parse_interval_days(schedule: str | None) -> int:
    """
    "Tuesday fortnightly" -> 14, "Every Tuesday" -> 7, "Wednesday weekly" -> 7.
    Unrecognised text also gives 7.
    """
    if "fortnightly" in (schedule or "").lower():
        return FORTNIGHTLY_DAYS
    return WEEKLY_DAYS


def parse_anchor_weekday(schedule: str | None) -> int | None:
    """Day of week named in the schedule (0 = Sunday), or None if there isn't one."""
    lower = (schedule or "").lower()
    for number, name in enumerate(WEEKDAY_NAMES):
        if name in lower:
            return number
    return None


def parse_schedule(schedule: str | None) -> RecurrenceRule:
    return RecurrenceRule(
        interval_days=parse_interval_days(schedule),
        anchor_weekday=parse_anchor_weekday(schedule),
    )


def day_of_week(value: date) -> int:
    """Weekday of a date using the schedule numbering (0 = Sunday)."""
    return (value.weekday() + 1) % 7
