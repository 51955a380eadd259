"""
Audit Logger

DESIGN DECISION: Every change to shared team data is logged.
This provides:
1. Traceability of who changed what
2. Debugging capability
3. Members can see the history of their team

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from household.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from household.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and member visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("household.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_created(
        self,
        team_id: str,
        actor_id: str,
        expense_id: str,
        description: str,
        amount: float,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_created(
            team_id=team_id,
            actor_id=actor_id,
            expense_id=expense_id,
            description=description,
            amount=amount,
            currency=currency,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        team_id: str,
        actor_id: str,
        expense_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            team_id=team_id,
            actor_id=actor_id,
            expense_id=expense_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        team_id: str,
        actor_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            team_id=team_id,
            actor_id=actor_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expenses_imported(
        self,
        team_id: str,
        actor_id: str,
        count: int,
        total: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_imported(
            team_id=team_id,
            actor_id=actor_id,
            count=count,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_expenses_exported(
        self,
        team_id: str,
        actor_id: str,
        count: int,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_exported(
            team_id=team_id,
            actor_id=actor_id,
            count=count,
            filename=filename,
            correlation_id=correlation_id,
        ))

    async def log_permission_denied(
        self,
        team_id: str,
        actor_id: str,
        content_type: str,
        action: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.permission_denied(
            team_id=team_id,
            actor_id=actor_id,
            content_type=content_type,
            action=action,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        team_id: str,
        actor_id: str,
        expense_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            team_id=team_id,
            actor_id=actor_id,
            expense_id=expense_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_settlement_computed(
        self,
        team_id: str,
        expense_count: int,
        raw_debt_count: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_computed(
            team_id=team_id,
            expense_count=expense_count,
            raw_debt_count=raw_debt_count,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    async def log_grocery_change(
        self,
        event_type: AuditEventType,
        team_id: str,
        actor_id: str,
        list_id: str,
        description: str,
        item_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.grocery_changed(
            event_type=event_type,
            team_id=team_id,
            actor_id=actor_id,
            list_id=list_id,
            description=description,
            item_id=item_id,
            correlation_id=correlation_id,
        ))

    async def log_calendar_event_change(
        self,
        event_type: AuditEventType,
        team_id: str,
        actor_id: str,
        event_id: str,
        title: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.calendar_event_changed(
            event_type=event_type,
            team_id=team_id,
            actor_id=actor_id,
            event_id=event_id,
            title=title,
            correlation_id=correlation_id,
        ))

    async def log_team_settings_updated(
        self,
        team_id: str,
        actor_id: str,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.team_settings_updated(
            team_id=team_id,
            actor_id=actor_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_member_change(
        self,
        event_type: AuditEventType,
        team_id: str,
        actor_id: str,
        member_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.member_changed(
            event_type=event_type,
            team_id=team_id,
            actor_id=actor_id,
            member_id=member_id,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def recent_events(
        self,
        team_id: Optional[str] = None,
        limit: int = 20,
    ) -> list[AuditEvent]:
        """
        Most recent persisted events, newest first.

        Returns an empty list when only logging locally or when the
        audit store can't be read.
        """
        if not self._storage:
            return []
        try:
            # Over-fetch so filtering by team still fills the page
            events = await self._storage.get_recent_events(limit * 5 if team_id else limit)
        except Exception as e:
            self._logger.error("audit_storage_read_failed", error=str(e))
            return []
        if team_id is not None:
            events = [event for event in events if event.team_id == team_id]
        return events[:limit]


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
