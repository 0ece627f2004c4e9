"""
Collection date projection and calendar rendering (no I/O).
"""

from doverbins.calendar.feed import calendar_filename, calendar_name, generate_feed, project_services
from doverbins.calendar.ical import fold_line, render_calendar
from doverbins.calendar.materializer import (
    FILTER_CATEGORIES,
    CalendarEvent,
    ServiceOccurrences,
    build_events,
    event_uid,
)
from doverbins.calendar.patterns import RecurrenceRule, parse_schedule
from doverbins.calendar.projector import (
    ProjectedOccurrence,
    apply_overrides,
    expected_next_collection,
    find_anchor_date,
    project_occurrences,
)

__all__ = [
    "RecurrenceRule",
    "parse_schedule",
    "ProjectedOccurrence",
    "project_occurrences",
    "find_anchor_date",
    "expected_next_collection",
    "apply_overrides",
    "ServiceOccurrences",
    "CalendarEvent",
    "build_events",
    "event_uid",
    "FILTER_CATEGORIES",
    "fold_line",
    "render_calendar",
    "calendar_name",
    "calendar_filename",
    "project_services",
    "generate_feed",
]
