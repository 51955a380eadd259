"""Tests for audit models and the audit logger."""

import asyncio
from uuid import uuid4

from household.audit import AuditLogger, create_correlation_id
from household.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from household.services.storage import InMemoryAuditStorage


class FailingAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise RuntimeError("sheet unavailable")


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            team_id="t1",
            description="Expense deleted",
        )
        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "expense_deleted"
        assert log_dict["team_id"] == "t1"
        assert log_dict["correlation_id"] is None

    def test_audit_event_to_sheets_row(self):
        event = AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPUTED,
            description="Settlement computed",
            details={"transaction_count": 2},
        )
        row = event.to_sheets_row()

        assert len(row) == 13
        assert row[2] == "settlement_computed"
        assert row[10] == '{"transaction_count": 2}'
        assert row[12] == "False"

    def test_builder_expense_created(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.expense_created(
            team_id="t1",
            actor_id="m1",
            expense_id="e1",
            description="Pizza",
            amount=30,
            currency="USD",
            correlation_id=correlation_id,
        )

        assert event.entity_type == "expense"
        assert event.entity_id == "e1"
        assert event.correlation_id == correlation_id
        assert event.details == {"amount": 30, "currency": "USD"}
        assert event.is_user_action is True

    def test_builder_permission_denied(self):
        event = AuditEventBuilder.permission_denied(
            team_id="t1",
            actor_id="m1",
            content_type="expenses",
            action="delete",
            entity_id="e1",
        )

        assert event.severity == AuditSeverity.WARNING
        assert event.description == "Permission denied: delete expenses"

    def test_builder_settlement_computed(self):
        event = AuditEventBuilder.settlement_computed(
            team_id="t1",
            expense_count=4,
            raw_debt_count=6,
            transaction_count=2,
        )

        assert event.actor_id is None
        assert "6 debts reduced to 2 payments" in event.description


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_persists_to_storage(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        asyncio.run(logger.log_expense_deleted("t1", "m1", "e1"))

        assert [e.event_type for e in storage.events] == [AuditEventType.EXPENSE_DELETED]

    def test_local_only(self):
        logger = AuditLogger()

        event = AuditEventBuilder.expense_deleted("t1", "m1", "e1")

        assert asyncio.run(logger.log(event)) is True

    def test_storage_failure_is_not_raised(self):
        logger = AuditLogger(FailingAuditStorage())

        event = AuditEventBuilder.external_service_error("sheets", "timeout")

        assert asyncio.run(logger.log(event)) is False

    def test_correlation_lookup(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        async def scenario():
            await logger.log_expenses_exported("t1", "m1", 3, "f.json", correlation_id)
            await logger.log_expenses_imported("t1", "m1", 3)
            return await storage.get_events_by_correlation_id(correlation_id)

        events = asyncio.run(scenario())

        assert [e.event_type for e in events] == [AuditEventType.EXPENSES_EXPORTED]

    def test_recent_events_for_team(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        async def scenario():
            await logger.log_expense_deleted("t1", "m1", "e1")
            await logger.log_expense_deleted("t2", "m1", "e2")
            await logger.log_expense_deleted("t1", "m1", "e3")
            return await logger.recent_events("t1", limit=1)

        events = asyncio.run(scenario())

        assert len(events) == 1
        assert events[0].team_id == "t1"

    def test_recent_events_without_storage(self):
        assert asyncio.run(AuditLogger().recent_events()) == []

    def test_external_service_error(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        asyncio.run(logger.log_external_service_error("storage", "quota exceeded"))

        event = storage.events[0]
        assert event.event_type == AuditEventType.EXTERNAL_SERVICE_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "quota exceeded"
        assert event.details == {"service": "storage"}

    def test_grocery_and_member_changes(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        async def scenario():
            await logger.log_grocery_change(
                AuditEventType.GROCERY_ITEM_ADDED, "t1", "m1", "l1", "Item added: Milk", item_id="i1",
            )
            await logger.log_member_change(
                AuditEventType.MEMBER_ROLE_CHANGED, "t1", "o1", "m1", details={"role": "admin"},
            )

        asyncio.run(scenario())

        grocery, role = storage.events
        assert grocery.entity_type == "grocery_list"
        assert grocery.details == {"item_id": "i1"}
        assert role.entity_id == "m1"
        assert role.description == "Member role changed to admin"
