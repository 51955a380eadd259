"""
Data Models Package

This package contains all Pydantic models used in Household Hub.
All data flowing through the system must conform to these schemas.
"""

from household.models.team import (
    ContentPolicy,
    ContentType,
    CurrencySettings,
    Member,
    NotificationSettings,
    Role,
    Team,
    TeamSettings,
    Theme,
    default_content_management,
)
from household.models.expense import (
    EXPENSE_CATEGORIES,
    Debt,
    Expense,
    ExpenseExport,
    ExpenseShare,
    SettlementPlan,
    ValidationIssue,
    ValidationResult,
)
from household.models.calendar import CalendarEvent
from household.models.grocery import GroceryItem, GroceryList
from household.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Team models
    "ContentPolicy",
    "ContentType",
    "CurrencySettings",
    "Member",
    "NotificationSettings",
    "Role",
    "Team",
    "TeamSettings",
    "Theme",
    "default_content_management",
    # Expense models
    "EXPENSE_CATEGORIES",
    "Debt",
    "Expense",
    "ExpenseExport",
    "ExpenseShare",
    "SettlementPlan",
    "ValidationIssue",
    "ValidationResult",
    # Calendar
    "CalendarEvent",
    # Groceries
    "GroceryItem",
    "GroceryList",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
