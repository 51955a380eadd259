"""Tests for the ICS calendar export."""

from datetime import datetime

from household.calendar import generate_ics_file
from household.models.calendar import CalendarEvent


def make_event(**kwargs):
    fields = {
        "id": "ev1",
        "title": "House meeting",
        "date": datetime(2024, 3, 9),
        "time": "18:30",
    }
    fields.update(kwargs)
    return CalendarEvent(**fields)


class TestGenerateIcsFile:
    """Tests for generate_ics_file."""

    def test_document_frame(self):
        lines = generate_ics_file([], "The Flat").split("\n")

        assert lines[0] == "BEGIN:VCALENDAR"
        assert "PRODID:-//The Flat//Calendar//EN" in lines
        assert "TZID:America/Los_Angeles" in lines
        assert lines[-1] == "END:VCALENDAR"

    def test_no_events_leaves_no_blank_line(self):
        lines = generate_ics_file([], "The Flat").split("\n")

        assert "" not in lines
        assert lines[-2] == "END:VTIMEZONE"

    def test_text_values_are_escaped(self):
        event = make_event(
            title="Rent, bills; more",
            description="Line one\nC:\\shared",
        )

        lines = generate_ics_file(event, "T").split("\n")

        assert "SUMMARY:Rent\\, bills\\; more" in lines
        assert "DESCRIPTION:Line one\\nC:\\\\shared" in lines

    def test_single_event_lasts_one_hour(self):
        lines = generate_ics_file(make_event(), "The Flat").split("\n")

        assert "UID:ev1@the-flat" in lines
        assert "SUMMARY:House meeting" in lines
        assert "DTSTART;TZID=America/Los_Angeles:20240309T183000" in lines
        assert "DTEND;TZID=America/Los_Angeles:20240309T193000" in lines

    def test_description_is_optional(self):
        without = generate_ics_file(make_event(), "T")
        with_description = generate_ics_file(make_event(description="Bring snacks"), "T")

        assert "DESCRIPTION:" not in without
        assert "DESCRIPTION:Bring snacks" in with_description

    def test_attendees(self):
        event = make_event(attendee_ids=["a@example.com", "b@example.com"])

        document = generate_ics_file(event, "T")

        assert document.count("ATTENDEE;ROLE=REQ-PARTICIPANT") == 2
        assert "mailto:b@example.com" in document

    def test_multiple_events(self):
        events = [make_event(id="ev1"), make_event(id="ev2", time="23:30")]

        document = generate_ics_file(events, "T")

        assert document.count("BEGIN:VEVENT") == 2
        assert "DTEND;TZID=America/Los_Angeles:20240310T003000" in document
