"""Tests for storage backends (no network: Sheets calls go to a fake worksheet)."""

import asyncio
from datetime import datetime, timedelta

import pytest

from household.models.audit import AuditEventBuilder
from household.models.calendar import CalendarEvent
from household.models.expense import Expense
from household.models.grocery import GroceryItem, GroceryList
from household.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsEventStorage,
    GoogleSheetsExpenseStorage,
    GoogleSheetsGroceryStorage,
    GoogleSheetsTeamStorage,
    InMemoryExpenseStorage,
    InMemoryTeamStorage,
    NotFoundError,
)
from household.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    DOCUMENT_COLUMNS,
    EXPENSE_COLUMNS,
    TEAM_COLUMNS,
)


class FakeWorksheet:
    """The slice of gspread.Worksheet the storage classes use."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(value) for value in values])

    def update(self, range_name, values, value_input_option=None):
        row_number = int("".join(ch for ch in range_name.split(":")[0] if ch.isdigit()))
        self.rows[row_number - 1] = [str(value) for value in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:

    def __init__(self):
        self.teams = FakeWorksheet(TEAM_COLUMNS)
        self.expenses = FakeWorksheet(EXPENSE_COLUMNS)
        self.audit = FakeWorksheet(AUDIT_COLUMNS)
        self.groceries = FakeWorksheet(DOCUMENT_COLUMNS)
        self.events = FakeWorksheet(DOCUMENT_COLUMNS)

    def get_teams_sheet(self):
        return self.teams

    def get_expenses_sheet(self):
        return self.expenses

    def get_audit_sheet(self):
        return self.audit

    def get_groceries_sheet(self):
        return self.groceries

    def get_events_sheet(self):
        return self.events


@pytest.fixture
def client():
    return FakeSheetsClient()


class TestInMemoryStorage:
    """Tests for the in-memory backend."""

    def test_duplicate_expense(self):
        storage = InMemoryExpenseStorage()
        expense = Expense(amount=5, paid_by_id="m1", team_id="t1")

        asyncio.run(storage.save_expense(expense))

        with pytest.raises(DuplicateError):
            asyncio.run(storage.save_expense(expense))

    def test_update_missing(self):
        storage = InMemoryExpenseStorage()

        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_expense(Expense(amount=5, paid_by_id="m1")))

    def test_list_newest_first_per_team(self):
        now = datetime(2024, 5, 1)
        older = Expense(description="old", amount=1, paid_by_id="m1", team_id="t1", date=now - timedelta(days=1))
        newer = Expense(description="new", amount=1, paid_by_id="m1", team_id="t1", date=now)
        elsewhere = Expense(description="other", amount=1, paid_by_id="m1", team_id="t2", date=now)
        storage = InMemoryExpenseStorage([older, newer, elsewhere])

        listed = asyncio.run(storage.list_expenses("t1"))

        assert [e.description for e in listed] == ["new", "old"]

    def test_returns_copies(self, team):
        storage = InMemoryTeamStorage([team])

        loaded = asyncio.run(storage.get_team(team.id))
        loaded.members.clear()

        assert len(asyncio.run(storage.get_team(team.id)).members) == 4


class TestGoogleSheetsExpenseStorage:
    """Tests for the Sheets expense backend."""

    def test_save_and_read_back(self, client, make_expense):
        storage = GoogleSheetsExpenseStorage(client)
        expense = make_expense("o1", {"o1": 50, "m1": 50}, description="Dinner")

        asyncio.run(storage.save_expense(expense))
        loaded = asyncio.run(storage.get_expense(expense.id))

        assert loaded.description == "Dinner"
        assert loaded.is_shared is True
        assert [s.member_id for s in loaded.shares] == ["o1", "m1"]
        assert loaded.shares[1].amount == 50

    def test_duplicate_is_not_retried(self, client, make_expense):
        storage = GoogleSheetsExpenseStorage(client)
        expense = make_expense("o1", {"m1": 10})
        asyncio.run(storage.save_expense(expense))

        with pytest.raises(DuplicateError):
            asyncio.run(storage.save_expense(expense))

        assert len(client.expenses.rows) == 2

    def test_update_and_delete(self, client, make_expense):
        storage = GoogleSheetsExpenseStorage(client)
        expense = make_expense("o1", {"m1": 10})
        asyncio.run(storage.save_expense(expense))

        asyncio.run(storage.update_expense(expense.model_copy(update={"description": "Edited"})))
        assert asyncio.run(storage.get_expense(expense.id)).description == "Edited"

        assert asyncio.run(storage.delete_expense(expense.id)) is True
        assert asyncio.run(storage.delete_expense(expense.id)) is False

    def test_update_missing(self, client):
        storage = GoogleSheetsExpenseStorage(client)

        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_expense(Expense(amount=1, paid_by_id="m1")))

    def test_unreadable_shares_load_as_empty(self, client, make_expense):
        storage = GoogleSheetsExpenseStorage(client)
        expense = make_expense("o1", {"m1": 10})
        asyncio.run(storage.save_expense(expense))
        client.expenses.rows[1][14] = "{not json"

        assert asyncio.run(storage.list_expenses("t1"))[0].shares == []


class TestGoogleSheetsTeamStorage:
    """Tests for the Sheets team backend."""

    def test_save_replaces_existing_row(self, client, team):
        storage = GoogleSheetsTeamStorage(client)

        asyncio.run(storage.save_team(team))
        asyncio.run(storage.save_team(team.model_copy(update={"name": "New Flat"})))

        assert len(client.teams.rows) == 2
        assert asyncio.run(storage.get_team(team.id)).name == "New Flat"
        assert asyncio.run(storage.get_team("missing")) is None


class TestGoogleSheetsAuditStorage:
    """Tests for the Sheets audit backend."""

    def test_append_and_query(self, client):
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEventBuilder.expense_deleted("t1", "m1", "e1")

        assert asyncio.run(storage.append_event(event)) is True

        events = asyncio.run(storage.get_events_by_entity("expense", "e1"))
        assert [e.event_id for e in events] == [event.event_id]
        assert events[0].is_user_action is True


class TestGoogleSheetsGroceryStorage:
    """Tests for the Sheets grocery backend."""

    def test_save_and_read_back(self, client):
        storage = GoogleSheetsGroceryStorage(client)
        grocery_list = GroceryList(
            name="Weekly",
            team_id="t1",
            items=[GroceryItem(name="Milk", quantity=2, unit="l", added_by="Mia")],
        )

        asyncio.run(storage.save_list(grocery_list))
        loaded = asyncio.run(storage.get_list(grocery_list.id))

        assert client.groceries.rows[1][:2] == [grocery_list.id, "t1"]
        assert loaded.name == "Weekly"
        assert loaded.items[0].quantity == 2
        assert loaded.items[0].added_by == "Mia"

    def test_duplicate_is_not_retried(self, client):
        storage = GoogleSheetsGroceryStorage(client)
        grocery_list = GroceryList(team_id="t1")
        asyncio.run(storage.save_list(grocery_list))

        with pytest.raises(DuplicateError):
            asyncio.run(storage.save_list(grocery_list))

        assert len(client.groceries.rows) == 2

    def test_update_replaces_row(self, client):
        storage = GoogleSheetsGroceryStorage(client)
        grocery_list = GroceryList(name="Weekly", team_id="t1")
        asyncio.run(storage.save_list(grocery_list))

        asyncio.run(storage.update_list(grocery_list.model_copy(update={"name": "Party"})))

        assert len(client.groceries.rows) == 2
        assert asyncio.run(storage.get_list(grocery_list.id)).name == "Party"

    def test_update_missing(self, client):
        storage = GoogleSheetsGroceryStorage(client)

        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_list(GroceryList(team_id="t1")))

    def test_list_skips_unreadable_rows(self, client):
        storage = GoogleSheetsGroceryStorage(client)
        first = GroceryList(name="First", team_id="t1", created_at=datetime(2024, 1, 1))
        second = GroceryList(name="Second", team_id="t1", created_at=datetime(2024, 2, 1))
        elsewhere = GroceryList(name="Other", team_id="t2")
        for grocery_list in (second, elsewhere, first):
            asyncio.run(storage.save_list(grocery_list))
        client.groceries.rows.append(["broken", "t1", "", "not json"])

        listed = asyncio.run(storage.list_lists("t1"))

        assert [l.name for l in listed] == ["First", "Second"]


class TestGoogleSheetsEventStorage:
    """Tests for the Sheets event backend."""

    def test_save_update_and_delete(self, client):
        storage = GoogleSheetsEventStorage(client)
        event = CalendarEvent(title="Bins out", date=datetime(2024, 3, 4), team_id="t1")
        asyncio.run(storage.save_event(event))

        asyncio.run(storage.update_event(event.model_copy(update={"title": "Recycling out"})))
        assert asyncio.run(storage.get_event(event.id)).title == "Recycling out"

        assert asyncio.run(storage.delete_event(event.id)) is True
        assert asyncio.run(storage.delete_event(event.id)) is False
        assert asyncio.run(storage.get_event(event.id)) is None

    def test_list_soonest_first_per_team(self, client):
        storage = GoogleSheetsEventStorage(client)
        later = CalendarEvent(title="Later", date=datetime(2024, 3, 9), team_id="t1")
        sooner = CalendarEvent(title="Sooner", date=datetime(2024, 3, 2), team_id="t1")
        elsewhere = CalendarEvent(title="Other", date=datetime(2024, 3, 1), team_id="t2")
        for event in (later, elsewhere, sooner):
            asyncio.run(storage.save_event(event))

        listed = asyncio.run(storage.list_events("t1"))

        assert [e.title for e in listed] == ["Sooner", "Later"]
