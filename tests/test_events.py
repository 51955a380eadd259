"""Tests for EventFlow (in-memory storage)."""

import asyncio
from datetime import datetime

import pytest

from household.audit import AuditLogger
from household.models.audit import AuditEventType
from household.models.calendar import CalendarEvent
from household.orchestrator import EventFlow, PermissionDeniedError
from household.services.storage import (
    InMemoryAuditStorage,
    InMemoryEventStorage,
    NotFoundError,
)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def event_storage():
    return InMemoryEventStorage()


@pytest.fixture
def event_flow(event_storage, audit_storage):
    return EventFlow(
        event_storage=event_storage,
        audit_logger=AuditLogger(audit_storage),
    )


def make_event(**kwargs):
    fields = {
        "title": "House meeting",
        "date": datetime(2024, 3, 9),
        "time": "18:30",
    }
    fields.update(kwargs)
    return CalendarEvent(**fields)


@pytest.fixture
def meeting(event_flow, team, member):
    """An event Mia created."""
    return asyncio.run(event_flow.create_event(team, member, make_event()))


class TestCreateEvent:
    """Tests for EventFlow.create_event."""

    def test_creator_and_team_are_set(self, event_flow, audit_storage, team, member):
        event = make_event(team_id="elsewhere", added_by_id="someone")

        saved = asyncio.run(event_flow.create_event(team, member, event))

        assert saved.team_id == "t1"
        assert saved.added_by_id == "m1"
        assert audit_storage.events[-1].event_type == AuditEventType.EVENT_CREATED
        assert audit_storage.events[-1].description == "Event added: House meeting"

    def test_listed_soonest_first(self, event_flow, team, member):
        later = asyncio.run(event_flow.create_event(team, member, make_event(time="20:00")))
        sooner = asyncio.run(event_flow.create_event(team, member, make_event(time="08:00")))

        assert [e.id for e in asyncio.run(event_flow.list_events(team))] == [sooner.id, later.id]


class TestUpdateAndDelete:
    """Tests for editing and deleting events."""

    def test_creator_edits_own_event_on_admin_policy(self, event_flow, team, member, meeting):
        team.settings.content_management["events"] = "admin"

        updated = asyncio.run(event_flow.update_event(
            team, member, meeting.id, {"title": "Flat meeting", "added_by_id": "o1"},
        ))

        assert updated.title == "Flat meeting"
        assert updated.added_by_id == "m1"

    def test_others_need_the_policy(self, event_flow, audit_storage, team, other_member, meeting):
        team.settings.content_management["events"] = "admin"

        with pytest.raises(PermissionDeniedError) as exc_info:
            asyncio.run(event_flow.delete_event(team, other_member, meeting.id))

        assert exc_info.value.action == "delete"
        assert audit_storage.events[-1].event_type == AuditEventType.PERMISSION_DENIED
        assert audit_storage.events[-1].entity_id == meeting.id

    def test_everyone_policy(self, event_flow, event_storage, team, other_member, meeting):
        assert asyncio.run(event_flow.delete_event(team, other_member, meeting.id)) is True
        assert asyncio.run(event_storage.get_event(meeting.id)) is None

    def test_missing_event(self, event_flow, team, owner):
        with pytest.raises(NotFoundError):
            asyncio.run(event_flow.update_event(team, owner, "nope", {"title": "X"}))


class TestExport:
    """Tests for calendar export through the flow."""

    def test_export_calendar(self, event_flow, team, meeting):
        filename, document = asyncio.run(event_flow.export_calendar(team))

        assert filename == "the-flat-calendar.ics"
        assert document.count("BEGIN:VEVENT") == 1
        assert f"UID:{meeting.id}@the-flat" in document

    def test_nothing_to_export(self, event_flow, team):
        with pytest.raises(ValueError, match="No events to export."):
            asyncio.run(event_flow.export_calendar(team))

    def test_export_single_event(self, team, meeting):
        filename, document = EventFlow.export_event(team, meeting)

        assert filename == "house-meeting-2024-03-09.ics"
        assert "SUMMARY:House meeting" in document
