"""
ICS Calendar Export

Builds an iCalendar document from team events so they can be imported
into other calendar apps. Events are one hour long and written in the
America/Los_Angeles zone, which the document defines inline.
"""

import re
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Union

from household.models.calendar import CalendarEvent


TIMEZONE_ID = "America/Los_Angeles"

VTIMEZONE = [
    "BEGIN:VTIMEZONE",
    f"TZID:{TIMEZONE_ID}",
    "BEGIN:STANDARD",
    "DTSTART:19701101T020000",
    "RRULE:FREQ=YEARLY;BYMONTH=11;BYDAY=1SU",
    "TZOFFSETFROM:-0700",
    "TZOFFSETTO:-0800",
    "END:STANDARD",
    "BEGIN:DAYLIGHT",
    "DTSTART:19700308T020000",
    "RRULE:FREQ=YEARLY;BYMONTH=3;BYDAY=2SU",
    "TZOFFSETFROM:-0800",
    "TZOFFSETTO:-0700",
    "END:DAYLIGHT",
    "END:VTIMEZONE",
]


def _escape_text(value: str) -> str:
    """Escape a TEXT property value (RFC 5545 section 3.3.11)."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _slug(text: str) -> str:
    return re.sub(r"\s+", "-", text.lower())


def calendar_filename(team_name: str) -> str:
    """e.g. the-flat-calendar.ics"""
    return f"{_slug(team_name or 'team')}-calendar.ics"


def event_filename(event: CalendarEvent) -> str:
    """e.g. house-meeting-2024-03-09.ics"""
    return f"{_slug(event.title)}-{event.date.date().isoformat()}.ics"


def _format_datetime(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%S")


def _event_lines(event: CalendarEvent, team_name: str) -> list[str]:
    start = event.starts_at
    end = start + timedelta(hours=1)
    uid_domain = _slug(team_name)

    lines = [
        "BEGIN:VEVENT",
        f"UID:{event.id}@{uid_domain}",
        f"SUMMARY:{_escape_text(event.title)}",
    ]
    if event.description:
        lines.append(f"DESCRIPTION:{_escape_text(event.description)}")
    lines.append(f"DTSTART;TZID={TIMEZONE_ID}:{_format_datetime(start)}")
    lines.append(f"DTEND;TZID={TIMEZONE_ID}:{_format_datetime(end)}")
    lines.extend(
        f"ATTENDEE;ROLE=REQ-PARTICIPANT;PARTSTAT=NEEDS-ACTION:mailto:{attendee_id}"
        for attendee_id in event.attendee_ids
    )
    lines.append("END:VEVENT")
    return lines


def generate_ics_file(
    events: Union[CalendarEvent, Iterable[CalendarEvent]],
    team_name: str,
) -> str:
    """
    Render one event or many as an ICS document.

    Lines are joined with "\\n".
    """
    if isinstance(events, CalendarEvent):
        events = [events]

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{team_name}//Calendar//EN",
        "CALSCALE:GREGORIAN",
        *VTIMEZONE,
    ]
    for event in events:
        lines.extend(_event_lines(event, team_name))
    lines.append("END:VCALENDAR")

    return "\n".join(lines)
