"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the hosted document store for another backend
2. Use in-memory storage for testing
3. Keep the ledger and permission logic decoupled from storage

The interface is intentionally simple - team-scoped collections with
create/read/update/delete, nothing more.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from household.models.audit import AuditEvent
from household.models.calendar import CalendarEvent
from household.models.expense import Expense
from household.models.grocery import GroceryList
from household.models.team import Team


class TeamStorageInterface(ABC):
    """Abstract interface for team documents."""

    @abstractmethod
    async def get_team(self, team_id: str) -> Optional[Team]:
        """
        Retrieve a team with its members and settings.

        Returns:
            The team if found, None otherwise
        """
        pass

    @abstractmethod
    async def save_team(self, team: Team) -> bool:
        """
        Create or replace a team document.

        Raises:
            StorageError: If save fails
        """
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Expenses always belong to exactly one team.
    """

    @abstractmethod
    async def save_expense(self, expense: Expense) -> bool:
        """
        Save a new expense.

        Raises:
            DuplicateError: If an expense with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        """
        Retrieve an expense by its ID.

        Returns:
            The expense if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> bool:
        """
        Replace an existing expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if deleted, False if it didn't exist
        """
        pass

    @abstractmethod
    async def list_expenses(self, team_id: str) -> list[Expense]:
        """
        List every expense of a team, newest first.

        No date filtering: the ledger needs all of them.
        """
        pass


class GroceryStorageInterface(ABC):
    """
    Abstract interface for grocery lists.

    A list is stored as one document together with its items.
    """

    @abstractmethod
    async def save_list(self, grocery_list: GroceryList) -> bool:
        """
        Save a new grocery list.

        Raises:
            DuplicateError: If a list with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_list(self, list_id: str) -> Optional[GroceryList]:
        pass

    @abstractmethod
    async def update_list(self, grocery_list: GroceryList) -> bool:
        """
        Replace an existing list, items included.

        Raises:
            NotFoundError: If the list doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def list_lists(self, team_id: str) -> list[GroceryList]:
        """List every grocery list of a team, oldest first."""
        pass


class EventStorageInterface(ABC):
    """Abstract interface for calendar events."""

    @abstractmethod
    async def save_event(self, event: CalendarEvent) -> bool:
        """
        Save a new event.

        Raises:
            DuplicateError: If an event with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        pass

    @abstractmethod
    async def update_event(self, event: CalendarEvent) -> bool:
        """
        Replace an existing event.

        Raises:
            NotFoundError: If the event doesn't exist
        """
        pass

    @abstractmethod
    async def delete_event(self, event_id: str) -> bool:
        """
        Delete an event by ID.

        Returns:
            True if deleted, False if it didn't exist
        """
        pass

    @abstractmethod
    async def list_events(self, team_id: str) -> list[CalendarEvent]:
        """List every event of a team, soonest first."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID, in chronological order.
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events, newest first.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
