"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted document store because:
1. Household members can view the data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for a household)
- No transactions (callers re-fetch after every write)
- Limited query capabilities (we filter in Python)

Teams, grocery lists and calendar events are stored as one JSON document
per row. Expenses are one row each, with shares JSON-encoded in the last
column.
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from household.config import get_settings
from household.models.audit import AuditEvent, AuditEventType, AuditSeverity
from household.models.calendar import CalendarEvent
from household.models.expense import Expense
from household.models.grocery import GroceryList
from household.models.team import Team
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


logger = structlog.get_logger(__name__)


TEAM_COLUMNS = [
    "id",
    "name",
    "updated_at",
    "document_json",
]

DOCUMENT_COLUMNS = [
    "id",
    "team_id",
    "updated_at",
    "document_json",
]

EXPENSE_COLUMNS = [
    "id",
    "team_id",
    "created_at",
    "updated_at",
    "description",
    "amount",
    "currency",
    "primary_amount",
    "primary_currency",
    "category",
    "date",
    "paid_by_id",
    "paid_by",
    "is_shared",
    "shares_json",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "team_id",
    "actor_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_getter(row: list):
    """Index into a row, tolerating short rows and empty cells."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_teams_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.teams_sheet_name, TEAM_COLUMNS, rows=100,
        )

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=1000,
        )

    def get_groceries_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.groceries_sheet_name, DOCUMENT_COLUMNS, rows=200,
        )

    def get_events_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.events_sheet_name, DOCUMENT_COLUMNS, rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000,
        )


class GoogleSheetsTeamStorage(TeamStorageInterface):
    """Teams as whole JSON documents, one per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _team_to_row(self, team: Team) -> list:
        return [
            team.id,
            team.name,
            team.updated_at.isoformat(),
            team.model_dump_json(by_alias=True),
        ]

    async def get_team(self, team_id: str) -> Optional[Team]:
        try:
            sheet = self._client.get_teams_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == team_id:
                    return Team.model_validate_json(_safe_getter(row)(3, "{}"))
            return None
        except Exception as e:
            raise StorageError(f"Failed to get team: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_team(self, team: Team) -> bool:
        try:
            sheet = self._client.get_teams_sheet()
            new_row = self._team_to_row(team)
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
                if row and row[0] == team.id:
                    sheet.update(
                        range_name=f"A{idx}:D{idx}",
                        values=[new_row],
                        value_input_option="RAW",
                    )
                    return True
            sheet.append_row(new_row, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save team: {e}")


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of expense storage.

    One expense per row; shares are JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _expense_to_row(self, expense: Expense) -> list:
        """Convert an Expense to a spreadsheet row."""
        return [
            expense.id,
            expense.team_id or "",
            expense.created_at.isoformat(),
            expense.updated_at.isoformat(),
            expense.description,
            str(expense.amount),
            expense.currency,
            str(expense.primary_amount),
            expense.primary_currency or "",
            expense.category,
            expense.date.isoformat(),
            expense.paid_by_id,
            expense.paid_by,
            str(expense.is_shared),
            json.dumps([
                share.model_dump(by_alias=True) for share in expense.shares
            ]),
        ]

    def _row_to_expense(self, row: list) -> Expense:
        """
        Convert a spreadsheet row to an Expense.

        Unreadable shares JSON loads as no shares rather than failing.
        """
        safe_get = _safe_getter(row)

        shares: Any = []
        shares_json = safe_get(14)
        if shares_json:
            try:
                shares = json.loads(shares_json)
            except json.JSONDecodeError:
                shares = []

        return Expense(
            id=safe_get(0),
            team_id=safe_get(1) or None,
            created_at=datetime.fromisoformat(safe_get(2)),
            updated_at=datetime.fromisoformat(safe_get(3)),
            description=safe_get(4),
            amount=float(safe_get(5, "0")),
            currency=safe_get(6, "USD"),
            primary_amount=float(safe_get(7)) if safe_get(7) else None,
            primary_currency=safe_get(8) or None,
            category=safe_get(9, "Other"),
            date=datetime.fromisoformat(safe_get(10)),
            paid_by_id=safe_get(11),
            paid_by=safe_get(12),
            is_shared=safe_get(13).lower() == "true",
            shares=shares,
        )

    def _find_row_index(self, sheet: gspread.Worksheet, expense_id: str) -> Optional[int]:
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):  # Row 1 is the header
            if row and row[0] == expense_id:
                return idx
        return None

    @retry(
        retry=retry_if_not_exception_type(DuplicateError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_expense(self, expense: Expense) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            if self._find_row_index(sheet, expense.id) is not None:
                raise DuplicateError(f"Expense already exists: {expense.id}")
            sheet.append_row(self._expense_to_row(expense), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == expense_id:
                    return self._row_to_expense(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}")

    async def update_expense(self, expense: Expense) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = self._find_row_index(sheet, expense.id)
            if idx is None:
                raise NotFoundError(f"Expense not found: {expense.id}")

            expense.updated_at = datetime.utcnow()
            last_column = chr(ord("A") + len(EXPENSE_COLUMNS) - 1)
            sheet.update(
                range_name=f"A{idx}:{last_column}{idx}",
                values=[self._expense_to_row(expense)],
                value_input_option="RAW",
            )
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")

    async def delete_expense(self, expense_id: str) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = self._find_row_index(sheet, expense_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")

    async def list_expenses(self, team_id: str) -> list[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header

            expenses = []
            for row in all_rows:
                if not row or not row[0]:  # Skip empty rows
                    continue
                if len(row) < 2 or row[1] != team_id:
                    continue

                try:
                    expenses.append(self._row_to_expense(row))
                except Exception as e:
                    logger.warning("expense_row_skipped", expense_id=row[0], error=str(e))

            # Newest first
            expenses.sort(key=lambda e: e.date, reverse=True)
            return expenses
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")


class _DocumentSheetStorage:
    """
    Shared row handling for content stored as one JSON document per row.

    Rows are [id, team_id, updated_at, document_json].
    """

    model: type
    kind: str

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        raise NotImplementedError

    def _to_row(self, document) -> list:
        return [
            document.id,
            document.team_id or "",
            document.updated_at.isoformat(),
            document.model_dump_json(by_alias=True),
        ]

    def _find_row_index(self, sheet: gspread.Worksheet, document_id: str) -> Optional[int]:
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == document_id:
                return idx
        return None

    def _insert(self, document) -> bool:
        try:
            sheet = self._sheet()
            if self._find_row_index(sheet, document.id) is not None:
                raise DuplicateError(f"{self.kind} already exists: {document.id}")
            sheet.append_row(self._to_row(document), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {self.kind}: {e}")

    def _get(self, document_id: str):
        try:
            sheet = self._sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == document_id:
                    return self.model.model_validate_json(_safe_getter(row)(3, "{}"))
            return None
        except Exception as e:
            raise StorageError(f"Failed to get {self.kind}: {e}")

    def _replace(self, document) -> bool:
        try:
            sheet = self._sheet()
            idx = self._find_row_index(sheet, document.id)
            if idx is None:
                raise NotFoundError(f"{self.kind} not found: {document.id}")
            sheet.update(
                range_name=f"A{idx}:D{idx}",
                values=[self._to_row(document)],
                value_input_option="RAW",
            )
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self.kind}: {e}")

    def _delete(self, document_id: str) -> bool:
        try:
            sheet = self._sheet()
            idx = self._find_row_index(sheet, document_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {self.kind}: {e}")

    def _list(self, team_id: str) -> list:
        try:
            sheet = self._sheet()
            documents = []
            for row in sheet.get_all_values()[1:]:
                if not row or not row[0] or len(row) < 2 or row[1] != team_id:
                    continue
                try:
                    documents.append(
                        self.model.model_validate_json(_safe_getter(row)(3, "{}"))
                    )
                except Exception as e:
                    logger.warning("document_row_skipped", kind=self.kind, id=row[0], error=str(e))
            return documents
        except Exception as e:
            raise StorageError(f"Failed to list {self.kind}s: {e}")


class GoogleSheetsGroceryStorage(_DocumentSheetStorage, GroceryStorageInterface):
    """Grocery lists with their items, one JSON document per row."""

    model = GroceryList
    kind = "Grocery list"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_groceries_sheet()

    @retry(
        retry=retry_if_not_exception_type(DuplicateError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_list(self, grocery_list: GroceryList) -> bool:
        return self._insert(grocery_list)

    async def get_list(self, list_id: str) -> Optional[GroceryList]:
        return self._get(list_id)

    async def update_list(self, grocery_list: GroceryList) -> bool:
        return self._replace(grocery_list)

    async def list_lists(self, team_id: str) -> list[GroceryList]:
        lists = self._list(team_id)
        lists.sort(key=lambda l: l.created_at)
        return lists


class GoogleSheetsEventStorage(_DocumentSheetStorage, EventStorageInterface):
    """Calendar events, one JSON document per row."""

    model = CalendarEvent
    kind = "Event"

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_events_sheet()

    @retry(
        retry=retry_if_not_exception_type(DuplicateError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_event(self, event: CalendarEvent) -> bool:
        return self._insert(event)

    async def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        return self._get(event_id)

    async def update_event(self, event: CalendarEvent) -> bool:
        return self._replace(event)

    async def delete_event(self, event_id: str) -> bool:
        return self._delete(event_id)

    async def list_events(self, team_id: str) -> list[CalendarEvent]:
        events = self._list(team_id)
        events.sort(key=lambda e: e.starts_at)
        return events


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        safe_get = _safe_getter(row)

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            team_id=safe_get(4) or None,
            actor_id=safe_get(5) or None,
            entity_type=safe_get(6) or None,
            entity_id=safe_get(7) or None,
            correlation_id=UUID(safe_get(8)) if safe_get(8) else None,
            description=safe_get(9),
            details=json.loads(safe_get(10)) if safe_get(10) else {},
            error_message=safe_get(11) or None,
            is_user_action=safe_get(12).lower() == "true",
        )

    def _read_events(self, matches) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0] or not matches(row):
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning(
                "audit_event_write_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = self._read_events(
                lambda row: len(row) > 8 and row[8] == str(correlation_id)
            )
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        try:
            events = self._read_events(
                lambda row: len(row) > 7 and row[6] == entity_type and row[7] == entity_id
            )
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._read_events(lambda row: True)
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
