"""
In-Memory Storage

Dict-backed implementations of the storage interfaces. Used by the tests
and when the app runs without a configured backend. Models are copied on
the way in and out so callers can't mutate stored state by accident.
"""

from typing import Optional
from uuid import UUID

from household.models.audit import AuditEvent
from household.models.calendar import CalendarEvent
from household.models.expense import Expense
from household.models.grocery import GroceryList
from household.models.team import Team
from household.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    EventStorageInterface,
    ExpenseStorageInterface,
    GroceryStorageInterface,
    NotFoundError,
    TeamStorageInterface,
)


class InMemoryTeamStorage(TeamStorageInterface):

    def __init__(self, teams: Optional[list[Team]] = None):
        self._teams: dict[str, Team] = {}
        for team in teams or []:
            self._teams[team.id] = team.model_copy(deep=True)

    async def get_team(self, team_id: str) -> Optional[Team]:
        team = self._teams.get(team_id)
        return team.model_copy(deep=True) if team else None

    async def save_team(self, team: Team) -> bool:
        self._teams[team.id] = team.model_copy(deep=True)
        return True


class InMemoryExpenseStorage(ExpenseStorageInterface):

    def __init__(self, expenses: Optional[list[Expense]] = None):
        self._expenses: dict[str, Expense] = {}
        for expense in expenses or []:
            self._expenses[expense.id] = expense.model_copy(deep=True)

    async def save_expense(self, expense: Expense) -> bool:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._expenses[expense.id] = expense.model_copy(deep=True)
        return True

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        expense = self._expenses.get(expense_id)
        return expense.model_copy(deep=True) if expense else None

    async def update_expense(self, expense: Expense) -> bool:
        if expense.id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense.id}")
        self._expenses[expense.id] = expense.model_copy(deep=True)
        return True

    async def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def list_expenses(self, team_id: str) -> list[Expense]:
        expenses = [
            expense.model_copy(deep=True)
            for expense in self._expenses.values()
            if expense.team_id == team_id
        ]
        # Stable: same-date expenses keep insertion order
        expenses.sort(key=lambda e: e.date, reverse=True)
        return expenses


class InMemoryGroceryStorage(GroceryStorageInterface):

    def __init__(self, lists: Optional[list[GroceryList]] = None):
        self._lists: dict[str, GroceryList] = {}
        for grocery_list in lists or []:
            self._lists[grocery_list.id] = grocery_list.model_copy(deep=True)

    async def save_list(self, grocery_list: GroceryList) -> bool:
        if grocery_list.id in self._lists:
            raise DuplicateError(f"Grocery list already exists: {grocery_list.id}")
        self._lists[grocery_list.id] = grocery_list.model_copy(deep=True)
        return True

    async def get_list(self, list_id: str) -> Optional[GroceryList]:
        grocery_list = self._lists.get(list_id)
        return grocery_list.model_copy(deep=True) if grocery_list else None

    async def update_list(self, grocery_list: GroceryList) -> bool:
        if grocery_list.id not in self._lists:
            raise NotFoundError(f"Grocery list not found: {grocery_list.id}")
        self._lists[grocery_list.id] = grocery_list.model_copy(deep=True)
        return True

    async def list_lists(self, team_id: str) -> list[GroceryList]:
        lists = [
            grocery_list.model_copy(deep=True)
            for grocery_list in self._lists.values()
            if grocery_list.team_id == team_id
        ]
        lists.sort(key=lambda l: l.created_at)
        return lists


class InMemoryEventStorage(EventStorageInterface):

    def __init__(self, events: Optional[list[CalendarEvent]] = None):
        self._events: dict[str, CalendarEvent] = {}
        for event in events or []:
            self._events[event.id] = event.model_copy(deep=True)

    async def save_event(self, event: CalendarEvent) -> bool:
        if event.id in self._events:
            raise DuplicateError(f"Event already exists: {event.id}")
        self._events[event.id] = event.model_copy(deep=True)
        return True

    async def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        event = self._events.get(event_id)
        return event.model_copy(deep=True) if event else None

    async def update_event(self, event: CalendarEvent) -> bool:
        if event.id not in self._events:
            raise NotFoundError(f"Event not found: {event.id}")
        self._events[event.id] = event.model_copy(deep=True)
        return True

    async def delete_event(self, event_id: str) -> bool:
        return self._events.pop(event_id, None) is not None

    async def list_events(self, team_id: str) -> list[CalendarEvent]:
        events = [
            event.model_copy(deep=True)
            for event in self._events.values()
            if event.team_id == team_id
        ]
        events.sort(key=lambda e: e.starts_at)
        return events


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self.events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self.events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
