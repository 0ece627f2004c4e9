"""
iCalendar (RFC 5545) rendering for collection feeds.

Values are encoded with the `icalendar` property types; content lines are
assembled and folded here so that folding is exact: at most 75 octets per
line, continuation lines start with one space, and a UTF-8 character is never
split across lines.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from icalendar import vDate, vText

import config
from doverbins.calendar.materializer import CalendarEvent

MAX_LINE_OCTETS = 75
CRLF = "\r\n"


def fold_line(line: str, limit: int = MAX_LINE_OCTETS) -> str:
    """Fold one content line, counting UTF-8 bytes rather than characters."""
    if len(line.encode("utf-8")) <= limit:
        return line

    folded = []
    current = ""
    current_bytes = 0
    for char in line:
        char_bytes = len(char.encode("utf-8"))
        if current_bytes + char_bytes > limit:
            folded.append(current)
            current = " " + char
            current_bytes = 1 + char_bytes
        else:
            current += char
            current_bytes += char_bytes
    if current:
        folded.append(current)
    return CRLF.join(folded)


def text(value: str) -> str:
    return vText(value).to_ical().decode("utf-8")


def ical_date(value) -> str:
    return vDate(value).to_ical().decode("ascii")


def ical_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y%m%dT%H%M%SZ")


def event_lines(event: CalendarEvent, stamp: str) -> list[str]:
    return [
        "BEGIN:VEVENT",
        f"UID:{event.uid}",
        f"DTSTAMP:{stamp}",
        f"DTSTART;VALUE=DATE:{ical_date(event.date)}",
        f"DTEND;VALUE=DATE:{ical_date(event.date + timedelta(days=1))}",
        f"SUMMARY:{text(event.summary)}",
        f"DESCRIPTION:{text(event.description)}",
        f"CATEGORIES:{text(event.category)}",
        f"COLOR:{event.color}",
        "TRANSP:TRANSPARENT",
        "END:VEVENT",
    ]


def render_calendar(
    events: Iterable[CalendarEvent],
    calendar_name: str,
    generated_at: datetime | None = None,
) -> str:
    """Serialize events into a complete VCALENDAR document (CRLF line endings)."""
    stamp = ical_timestamp(generated_at or datetime.now(timezone.utc))
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{config.CALENDAR_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{text(calendar_name)}",
        f"X-WR-TIMEZONE:{config.CALENDAR_TIMEZONE}",
        f"REFRESH-INTERVAL;VALUE=DURATION:{config.CALENDAR_REFRESH_INTERVAL}",
        f"X-PUBLISHED-TTL:{config.CALENDAR_REFRESH_INTERVAL}",
    ]
    for event in events:
        lines.extend(event_lines(event, stamp))
    lines.append("END:VCALENDAR")

    return CRLF.join(fold_line(line) for line in lines) + CRLF
