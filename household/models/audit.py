"""
Audit Models for Household Hub

Every change to shared team data is logged for audit purposes.
This provides:
1. Traceability of who changed which expense
2. A record of permission denials
3. Debugging information when things go wrong

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSES_IMPORTED = "expenses_imported"
    EXPENSES_EXPORTED = "expenses_exported"

    # Checks
    PERMISSION_DENIED = "permission_denied"
    VALIDATION_FAILED = "validation_failed"

    # Settlement
    SETTLEMENT_COMPUTED = "settlement_computed"

    # Groceries
    GROCERY_LIST_CREATED = "grocery_list_created"
    GROCERY_LIST_RENAMED = "grocery_list_renamed"
    GROCERY_ITEM_ADDED = "grocery_item_added"
    GROCERY_ITEM_UPDATED = "grocery_item_updated"
    GROCERY_ITEM_DELETED = "grocery_item_deleted"

    # Calendar
    EVENT_CREATED = "event_created"
    EVENT_UPDATED = "event_updated"
    EVENT_DELETED = "event_deleted"

    # Team administration
    TEAM_SETTINGS_UPDATED = "team_settings_updated"
    MEMBER_ROLE_CHANGED = "member_role_changed"
    MEMBER_REMOVED = "member_removed"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    team_id: Optional[str] = None
    actor_id: Optional[str] = Field(
        default=None,
        description="Member who triggered the event"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'settlement')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "team_id": self.team_id,
            "actor_id": self.actor_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, team_id, actor_id,
         entity_type, entity_id, correlation_id, description, details_json,
         error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.team_id or "",
            self.actor_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(team_id, actor_id, expense_id, ...)
        event = AuditEventBuilder.permission_denied(team_id, actor_id, "expenses", ...)
    """

    @staticmethod
    def expense_created(
        team_id: str,
        actor_id: str,
        expense_id: str,
        description: str,
        amount: float,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {description}",
            details={
                "amount": amount,
                "currency": currency,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        team_id: str,
        actor_id: str,
        expense_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense updated ({len(changed_fields)} fields)",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        team_id: str,
        actor_id: str,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def expenses_imported(
        team_id: str,
        actor_id: str,
        count: int,
        total: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if total is None or total == count:
            description = f"Imported {count} expenses"
        else:
            description = f"Imported {count} of {total} expenses"
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_IMPORTED,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="expense",
            correlation_id=correlation_id,
            description=description,
            details={"count": count, "total": count if total is None else total},
            is_user_action=True,
        )

    @staticmethod
    def expenses_exported(
        team_id: str,
        actor_id: str,
        count: int,
        filename: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_EXPORTED,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Exported {count} expenses",
            details={"count": count, "filename": filename},
            is_user_action=True,
        )

    @staticmethod
    def permission_denied(
        team_id: str,
        actor_id: str,
        content_type: str,
        action: str,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            team_id=team_id,
            actor_id=actor_id,
            entity_type=content_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Permission denied: {action} {content_type}",
            details={
                "content_type": content_type,
                "action": action,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        team_id: str,
        actor_id: str,
        expense_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def settlement_computed(
        team_id: str,
        expense_count: int,
        raw_debt_count: int,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPUTED,
            team_id=team_id,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=(
                f"Settlement computed: {raw_debt_count} debts "
                f"reduced to {transaction_count} payments"
            ),
            details={
                "expense_count": expense_count,
                "raw_debt_count": raw_debt_count,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def grocery_changed(
        event_type: AuditEventType,
        team_id: str,
        actor_id: str,
        list_id: str,
        description: str,
        item_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="grocery_list",
            entity_id=list_id,
            correlation_id=correlation_id,
            description=description,
            details={"item_id": item_id} if item_id else {},
            is_user_action=True,
        )

    @staticmethod
    def calendar_event_changed(
        event_type: AuditEventType,
        team_id: str,
        actor_id: str,
        event_id: str,
        title: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = {
            AuditEventType.EVENT_CREATED: "added",
            AuditEventType.EVENT_UPDATED: "updated",
            AuditEventType.EVENT_DELETED: "deleted",
        }.get(event_type, "changed")
        return AuditEvent(
            event_type=event_type,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="event",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"Event {verb}: {title}",
            is_user_action=True,
        )

    @staticmethod
    def team_settings_updated(
        team_id: str,
        actor_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEAM_SETTINGS_UPDATED,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="team",
            entity_id=team_id,
            correlation_id=correlation_id,
            description=f"Team settings updated ({', '.join(sorted(changes))})",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def member_changed(
        event_type: AuditEventType,
        team_id: str,
        actor_id: str,
        member_id: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if event_type == AuditEventType.MEMBER_REMOVED:
            description = "Member removed"
        else:
            description = f"Member role changed to {(details or {}).get('role')}"
        return AuditEvent(
            event_type=event_type,
            team_id=team_id,
            actor_id=actor_id,
            entity_type="member",
            entity_id=member_id,
            correlation_id=correlation_id,
            description=description,
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
