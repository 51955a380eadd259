"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory backend serves tests
and local runs.
"""

from household.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    EventStorageInterface,
    ExpenseStorageInterface,
    GroceryStorageInterface,
    NotFoundError,
    StorageError,
    TeamStorageInterface,
)
from household.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryEventStorage,
    InMemoryExpenseStorage,
    InMemoryGroceryStorage,
    InMemoryTeamStorage,
)
from household.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEventStorage,
    GoogleSheetsExpenseStorage,
    GoogleSheetsGroceryStorage,
    GoogleSheetsTeamStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "EventStorageInterface",
    "ExpenseStorageInterface",
    "GroceryStorageInterface",
    "TeamStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryEventStorage",
    "InMemoryExpenseStorage",
    "InMemoryGroceryStorage",
    "InMemoryTeamStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsEventStorage",
    "GoogleSheetsExpenseStorage",
    "GoogleSheetsGroceryStorage",
    "GoogleSheetsTeamStorage",
]
