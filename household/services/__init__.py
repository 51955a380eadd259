"""Services package."""

from household.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    GoogleSheetsTeamStorage,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    InMemoryTeamStorage,
    NotFoundError,
    StorageError,
    TeamStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "ExpenseStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "GoogleSheetsTeamStorage",
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "InMemoryTeamStorage",
    "NotFoundError",
    "StorageError",
    "TeamStorageInterface",
]
