"""
Tests for iCalendar rendering and line folding
"""
from datetime import date, datetime, timezone

from doverbins.calendar.feed import calendar_filename, calendar_name, generate_feed
from doverbins.calendar.ical import fold_line, render_calendar
from doverbins.calendar.materializer import CalendarEvent
from doverbins.models import CollectionRecord, Subscription

GENERATED_AT = datetime(2026, 1, 5, 6, 0, tzinfo=timezone.utc)


def _event(**overrides):
    values = dict(
        uid="combined-abc123def456-20260106@doverbins.app",
        date=date(2026, 1, 6),
        summary="Recycling + Food waste",
        description="Put out your green bin (mixed recycling)\nPut out your food waste caddy",
        category="Recycling",
        color="forestgreen",
        services=("Recycling Collection", "Food Collection"),
    )
    values.update(overrides)
    return CalendarEvent(**values)


def test_fold_200_ascii_bytes():
    line = "X" * 200
    parts = fold_line(line).split("\r\n")
    assert [len(part.encode("utf-8")) for part in parts] == [75, 75, 52]
    assert parts[1].startswith(" ") and parts[2].startswith(" ")
    assert len(parts[1]) - 1 == 74
    assert len(parts[2]) - 1 == 51
    assert "".join([parts[0]] + [part[1:] for part in parts[1:]]) == line


def test_short_line_not_folded():
    assert fold_line("SUMMARY:Recycling") == "SUMMARY:Recycling"
    assert fold_line("X" * 75) == "X" * 75


def test_fold_never_splits_multibyte_characters():
    line = "DESCRIPTION:" + "é" * 100  # two bytes each
    parts = fold_line(line).split("\r\n")
    for part in parts:
        assert len(part.encode("utf-8")) <= 75
        part.encode("utf-8").decode("utf-8")
    assert "".join([parts[0]] + [part[1:] for part in parts[1:]]) == line


def test_render_calendar_structure():
    document = render_calendar([_event()], "Bin Collection - CT16 1AA", generated_at=GENERATED_AT)

    assert document.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0\r\n")
    assert document.endswith("END:VCALENDAR\r\n")
    assert "\n" not in document.replace("\r\n", "")
    raw_lines = document.split("\r\n")
    assert all(len(line.encode("utf-8")) <= 75 for line in raw_lines)
    lines = document.replace("\r\n ", "").split("\r\n")
    assert "METHOD:PUBLISH" in lines
    assert "X-WR-CALNAME:Bin Collection - CT16 1AA" in lines
    assert "X-WR-TIMEZONE:Europe/London" in lines
    assert "DTSTAMP:20260105T060000Z" in lines
    assert "DTSTART;VALUE=DATE:20260106" in lines
    assert "DTEND;VALUE=DATE:20260107" in lines
    assert "CATEGORIES:Recycling" in lines
    assert "COLOR:forestgreen" in lines
    assert "TRANSP:TRANSPARENT" in lines
    assert "DESCRIPTION:Put out your green bin (mixed recycling)\\nPut out your food waste caddy" in lines


def test_text_values_are_escaped():
    document = render_calendar(
        [_event(summary="Paper, card; glass")], "Bins", generated_at=GENERATED_AT
    )
    assert "SUMMARY:Paper\\, card\\; glass" in document.split("\r\n")


def test_calendar_names_and_filenames():
    assert calendar_name("CT16 1AA") == "Bin Collection - CT16 1AA"
    assert calendar_name("CT16 1AA", "recycling") == "Recycling Bins - CT16 1AA"
    assert calendar_name("CT16 1AA", "general") == "General Waste Bins - CT16 1AA"
    assert calendar_filename("CT16 1AA") == "bins-CT161AA.ics"
    assert calendar_filename("CT16 1AA", "recycling") == "recycling-CT161AA.ics"
    assert calendar_filename("CT16 1AA", "general") == "general-waste-CT161AA.ics"


def test_generate_feed_applies_overrides():
    subscription = Subscription(
        id="5b0f3c6e-1111-4222-8333-944455556666",
        uprn="100060000001",
        address="1 Example Road",
        postcode="CT16 1AA",
        calendar_token="0d9c5a52-7777-4888-9999-aaaabbbbcccc",
    )
    collections = [CollectionRecord("100060000001", "Refuse Collection", "Thursday fortnightly", date(2025, 12, 11))]
    override_map = {"Refuse Collection": {"2025-12-25": date(2025, 12, 29)}}

    document = generate_feed(
        subscription, collections, override_map, today=date(2025, 12, 1), generated_at=GENERATED_AT
    )
    lines = document.replace("\r\n ", "").split("\r\n")
    assert "DTSTART;VALUE=DATE:20251211" in lines
    assert "DTSTART;VALUE=DATE:20251229" in lines
    assert "DTSTART;VALUE=DATE:20251225" not in lines
    assert "SUMMARY:General waste (changed date)" in lines
    assert "100060000001" not in document
