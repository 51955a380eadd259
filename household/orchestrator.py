"""
Main Orchestrator for Household Hub

This module ties together all the components and defines the
end-to-end flows for:
1. Expense changes (check permission → validate → convert → save → audit)
2. Debt tracking (fetch expenses → raw debts → optimize → render)
3. Grocery lists and calendar events (check permission → save → audit)
4. Team administration (settings, roles, members)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No content is written without a permission check
- No expense is created or edited that fails validation
- Settlements are always recomputed from the full expense set,
  never patched incrementally
- Every step is audited, storage failures included

Team and member are always passed in explicitly. Nothing here reads
the "current" team from global state.
"""

from collections.abc import Awaitable
from datetime import datetime
from typing import Any, NamedTuple, Optional, TypeVar, Union
from uuid import UUID

import structlog

from household.audit import AuditLogger, create_correlation_id
from household.calendar import (
    calendar_filename,
    event_filename,
    generate_ics_file,
)
from household.config import get_settings
from household.currency import convert_currency
from household.expenses import build_export, dump_export, export_filename, parse_import
from household.ledger import compute_raw_debts, describe_debts, optimize
from household.models.audit import AuditEventType
from household.models.calendar import CalendarEvent
from household.models.expense import Expense, SettlementPlan, ValidationResult
from household.models.grocery import GroceryItem, GroceryList
from household.models.team import ContentPolicy, ContentType, Member, Role, Team
from household.permissions import (
    can_change_member_role,
    can_manage_content,
    can_manage_team_settings,
    can_remove_member,
)
from household.services.storage import (
    DuplicateError,
    EventStorageInterface,
    ExpenseStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsEventStorage,
    GoogleSheetsExpenseStorage,
    GoogleSheetsGroceryStorage,
    GoogleSheetsTeamStorage,
    GroceryStorageInterface,
    InMemoryEventStorage,
    InMemoryExpenseStorage,
    InMemoryGroceryStorage,
    InMemoryTeamStorage,
    NotFoundError,
    StorageError,
    TeamStorageInterface,
)
from household.validation import ExpenseValidator


logger = structlog.get_logger(__name__)

T = TypeVar("T")


# Fields an edit may change. Payer, team and identity are fixed.
EDITABLE_FIELDS = {
    "description",
    "amount",
    "currency",
    "category",
    "date",
    "is_shared",
    "shares",
}

EDITABLE_ITEM_FIELDS = {"name", "quantity", "unit", "notes"}

EDITABLE_EVENT_FIELDS = {
    "title",
    "description",
    "date",
    "time",
    "attendees",
    "attendee_ids",
}


class PermissionDeniedError(Exception):
    """The member may not perform this change."""

    def __init__(self, message: str, content_type: Union[ContentType, str], action: str):
        super().__init__(message)
        self.content_type = content_type
        self.action = action


class ExpenseValidationError(Exception):
    """The expense failed validation and was not saved."""

    def __init__(self, result: ValidationResult, message: str):
        super().__init__(message)
        self.result = result


class _Flow:
    """Permission denials and storage failures, handled the same way everywhere."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    async def _deny_unless(
        self,
        allowed: bool,
        team: Team,
        member: Member,
        subject: Union[ContentType, str],
        action: str,
        message: str,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        if allowed:
            return

        subject_tag = subject.value if isinstance(subject, ContentType) else subject
        if self._audit_logger:
            await self._audit_logger.log_permission_denied(
                team_id=team.id,
                actor_id=member.id if member else "",
                content_type=subject_tag,
                action=action,
                entity_id=entity_id,
                correlation_id=correlation_id,
            )
        raise PermissionDeniedError(message, content_type=subject, action=action)

    async def _require_membership(
        self,
        team: Team,
        member: Member,
        subject: ContentType,
        action: str,
        correlation_id: UUID,
    ) -> None:
        await self._deny_unless(
            member is not None and team.find_member(member.id) is not None,
            team,
            member,
            subject,
            action,
            "You must be a member of the team to make changes.",
            None,
            correlation_id,
        )

    async def _stored(self, operation: Awaitable[T], correlation_id: UUID) -> T:
        """
        Await a storage call.

        Backend failures are audited as external service errors and
        re-raised. Missing and duplicate records are ordinary outcomes and
        pass through untouched.
        """
        try:
            return await operation
        except (NotFoundError, DuplicateError):
            raise
        except StorageError as e:
            logger.error(
                "storage_call_failed",
                error=str(e),
                correlation_id=str(correlation_id),
            )
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    "storage", str(e), correlation_id,
                )
            raise


class ExpenseFlow(_Flow):
    """
    Orchestrates changes to a team's expenses.

    Flow for every write:
    1. Permission → can_manage_content for expenses
    2. Validate → fields, payer and shares
    3. Convert → amount in the team's primary currency
    4. Save → storage
    5. Audit
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._storage = expense_storage
        self._validator = validator or ExpenseValidator()

    async def _require_permission(
        self,
        team: Team,
        member: Member,
        action: str,
        creator_id: Optional[str],
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self._deny_unless(
            can_manage_content(team, member, ContentType.EXPENSES, creator_id),
            team,
            member,
            ContentType.EXPENSES,
            action,
            f"You don't have permission to {action} this expense.",
            entity_id,
            correlation_id,
        )

    async def _require_valid(
        self,
        expense: Expense,
        team: Team,
        member: Member,
        correlation_id: UUID,
    ) -> None:
        result = self._validator.validate(expense, team)
        if result.is_valid:
            return

        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                team_id=team.id,
                actor_id=member.id,
                expense_id=expense.id,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
                correlation_id=correlation_id,
            )
        raise ExpenseValidationError(
            result,
            self._validator.get_user_friendly_summary(result),
        )

    @staticmethod
    def _with_primary_amount(
        expense: Expense,
        team: Team,
        exchange_rates: Optional[dict[str, float]],
    ) -> Expense:
        """Fill in the amount in the team's primary currency."""
        primary = team.primary_currency
        if expense.currency == primary:
            primary_amount = expense.amount
        else:
            primary_amount = convert_currency(
                expense.amount,
                expense.currency,
                primary,
                exchange_rates or {},
            )
        return expense.model_copy(update={
            "primary_amount": primary_amount,
            "primary_currency": primary,
        })

    async def create_expense(
        self,
        team: Team,
        member: Member,
        expense: Expense,
        exchange_rates: Optional[dict[str, float]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Record a new expense for the team.

        Recording an expense paid by someone else is subject to the
        team's content policy; recording your own always is allowed.

        Raises:
            PermissionDeniedError: Member may not record this expense
            ExpenseValidationError: Expense failed validation
            StorageError: The expense could not be saved
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._require_permission(
            team, member, "add", expense.paid_by_id, None, correlation_id,
        )

        updates: dict[str, Any] = {"team_id": team.id}
        if not expense.is_shared:
            updates["shares"] = []
        if not expense.paid_by:
            payer = team.find_member(expense.paid_by_id)
            updates["paid_by"] = payer.name if payer else ""
        expense = expense.model_copy(update=updates)

        await self._require_valid(expense, team, member, correlation_id)

        expense = self._with_primary_amount(expense, team, exchange_rates)
        await self._stored(self._storage.save_expense(expense), correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_expense_created(
                team_id=team.id,
                actor_id=member.id,
                expense_id=expense.id,
                description=expense.description,
                amount=expense.amount,
                currency=expense.currency,
                correlation_id=correlation_id,
            )

        return expense

    async def update_expense(
        self,
        team: Team,
        member: Member,
        expense_id: str,
        changes: dict[str, Any],
        exchange_rates: Optional[dict[str, float]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Apply an edit to an existing expense.

        Only EDITABLE_FIELDS are taken from `changes`; the primary amount
        is always recomputed.

        Raises:
            NotFoundError: No such expense
            PermissionDeniedError: Member may not edit this expense
            ExpenseValidationError: The edited expense failed validation
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._stored(self._storage.get_expense(expense_id), correlation_id)
        if existing is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        await self._require_permission(
            team, member, "edit", existing.paid_by_id, expense_id, correlation_id,
        )

        changed_fields = sorted(
            key for key in changes
            if key in EDITABLE_FIELDS
        )
        data = existing.model_dump()
        data.update({key: changes[key] for key in changed_fields})
        if not data["is_shared"]:
            data["shares"] = []
        data["updated_at"] = datetime.utcnow()
        data["primary_amount"] = None
        data["primary_currency"] = None
        updated = Expense.model_validate(data)

        await self._require_valid(updated, team, member, correlation_id)

        updated = self._with_primary_amount(updated, team, exchange_rates)
        await self._stored(self._storage.update_expense(updated), correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_expense_updated(
                team_id=team.id,
                actor_id=member.id,
                expense_id=expense_id,
                changed_fields=changed_fields,
                correlation_id=correlation_id,
            )

        return updated

    async def delete_expense(
        self,
        team: Team,
        member: Member,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an expense.

        Raises:
            NotFoundError: No such expense
            PermissionDeniedError: Member may not delete this expense
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._stored(self._storage.get_expense(expense_id), correlation_id)
        if existing is None:
            raise NotFoundError(f"Expense not found: {expense_id}")

        await self._require_permission(
            team, member, "delete", existing.paid_by_id, expense_id, correlation_id,
        )

        deleted = await self._stored(self._storage.delete_expense(expense_id), correlation_id)

        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                team_id=team.id,
                actor_id=member.id,
                expense_id=expense_id,
                correlation_id=correlation_id,
            )

        return deleted

    async def list_expenses(
        self,
        team: Team,
        correlation_id: Optional[UUID] = None,
    ) -> list[Expense]:
        correlation_id = correlation_id or create_correlation_id()
        return await self._stored(self._storage.list_expenses(team.id), correlation_id)

    async def export_expenses(
        self,
        team: Team,
        member: Member,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[str, str]:
        """
        Export every expense of the team.

        Returns:
            (filename, json_document)
        """
        correlation_id = correlation_id or create_correlation_id()

        expenses = await self._stored(self._storage.list_expenses(team.id), correlation_id)
        filename = export_filename(team)
        document = dump_export(build_export(team, expenses))

        if self._audit_logger:
            await self._audit_logger.log_expenses_exported(
                team_id=team.id,
                actor_id=member.id,
                count=len(expenses),
                filename=filename,
                correlation_id=correlation_id,
            )

        return filename, document

    async def import_expenses(
        self,
        team: Team,
        member: Member,
        content: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[Expense]:
        """
        Import an export document into the team.

        Imported expenses belong to other members too, so the team's
        content policy applies with no creator override. Records are
        stored as read; nothing is re-validated or re-converted.

        Records are saved one by one. If storage fails part way, the
        audit trail still records how many made it in before the
        error is re-raised.

        Raises:
            PermissionDeniedError: Member may not manage team expenses
            ImportFormatError: The document is not an expense export
            StorageError: Saving stopped part way through
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._require_permission(
            team, member, "import", None, None, correlation_id,
        )

        expenses = parse_import(content, team.id)
        imported = 0
        try:
            for expense in expenses:
                await self._stored(self._storage.save_expense(expense), correlation_id)
                imported += 1
        finally:
            if self._audit_logger:
                await self._audit_logger.log_expenses_imported(
                    team_id=team.id,
                    actor_id=member.id,
                    count=imported,
                    total=len(expenses),
                    correlation_id=correlation_id,
                )

        return expenses


class SettlementFlow(_Flow):
    """
    Orchestrates the debt tracking view.

    Always starts from the team's full expense list: the ledger and the
    optimizer are pure functions of their whole input.
    """

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        tolerance: Optional[float] = None,
    ):
        super().__init__(audit_logger)
        self._storage = expense_storage
        if tolerance is None:
            tolerance = get_settings().app.settlement_tolerance
        self._tolerance = tolerance

    def plan(self, team: Team, expenses: list[Expense]) -> SettlementPlan:
        """Build the plan for an already fetched expense list."""
        raw_debts = compute_raw_debts(expenses)
        transactions = optimize(raw_debts, tolerance=self._tolerance)

        return SettlementPlan(
            team_id=team.id,
            currency=team.primary_currency,
            expense_count=len(expenses),
            raw_debts=raw_debts,
            transactions=transactions,
            debt_lines=describe_debts(team, raw_debts, verb="owes"),
            settlement_lines=describe_debts(team, transactions, verb="pays"),
        )

    async def compute(
        self,
        team: Team,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementPlan:
        """Fetch the team's expenses and build its settlement plan."""
        correlation_id = correlation_id or create_correlation_id()

        expenses = await self._stored(self._storage.list_expenses(team.id), correlation_id)
        plan = self.plan(team, expenses)

        if self._audit_logger:
            await self._audit_logger.log_settlement_computed(
                team_id=team.id,
                expense_count=plan.expense_count,
                raw_debt_count=len(plan.raw_debts),
                transaction_count=len(plan.transactions),
                correlation_id=correlation_id,
            )

        return plan


class GroceryFlow(_Flow):
    """
    Orchestrates the team's grocery lists.

    Any member may start a list or add an item to one. Ticking items
    off, editing or deleting them and renaming lists follow the team's
    grocery policy. Items only record the adder's display name, so there
    is no creator override.
    """

    def __init__(
        self,
        grocery_storage: GroceryStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._storage = grocery_storage

    async def _require_permission(
        self,
        team: Team,
        member: Member,
        action: str,
        list_id: str,
        correlation_id: UUID,
    ) -> None:
        await self._deny_unless(
            can_manage_content(team, member, ContentType.GROCERY),
            team,
            member,
            ContentType.GROCERY,
            action,
            f"You don't have permission to {action} this item.",
            list_id,
            correlation_id,
        )

    async def _get_list(self, team: Team, list_id: str, correlation_id: UUID) -> GroceryList:
        grocery_list = await self._stored(self._storage.get_list(list_id), correlation_id)
        if grocery_list is None or grocery_list.team_id != team.id:
            raise NotFoundError(f"Grocery list not found: {list_id}")
        return grocery_list

    @staticmethod
    def _require_item(grocery_list: GroceryList, item_id: str) -> GroceryItem:
        item = grocery_list.find_item(item_id)
        if item is None:
            raise NotFoundError(f"Item not found: {item_id}")
        return item

    async def _save(
        self,
        grocery_list: GroceryList,
        items: list[GroceryItem],
        correlation_id: UUID,
        **updates: Any,
    ) -> GroceryList:
        updated = grocery_list.model_copy(update={
            "items": items,
            "updated_at": datetime.utcnow(),
            **updates,
        })
        await self._stored(self._storage.update_list(updated), correlation_id)
        return updated

    async def _audit(
        self,
        event_type: AuditEventType,
        team: Team,
        member: Member,
        list_id: str,
        description: str,
        item_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_grocery_change(
                event_type=event_type,
                team_id=team.id,
                actor_id=member.id,
                list_id=list_id,
                description=description,
                item_id=item_id,
                correlation_id=correlation_id,
            )

    async def list_lists(
        self,
        team: Team,
        correlation_id: Optional[UUID] = None,
    ) -> list[GroceryList]:
        correlation_id = correlation_id or create_correlation_id()
        return await self._stored(self._storage.list_lists(team.id), correlation_id)

    async def create_list(
        self,
        team: Team,
        member: Member,
        name: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> GroceryList:
        """Start a new, empty list. Unnamed lists are numbered: "New List 3"."""
        correlation_id = correlation_id or create_correlation_id()

        await self._require_membership(team, member, ContentType.GROCERY, "create", correlation_id)

        if not name or not name.strip():
            existing = await self._stored(self._storage.list_lists(team.id), correlation_id)
            name = f"New List {len(existing) + 1}"

        grocery_list = GroceryList(name=name, team_id=team.id)
        await self._stored(self._storage.save_list(grocery_list), correlation_id)

        await self._audit(
            AuditEventType.GROCERY_LIST_CREATED, team, member, grocery_list.id,
            f"List created: {grocery_list.name}", None, correlation_id,
        )
        return grocery_list

    async def rename_list(
        self,
        team: Team,
        member: Member,
        list_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> GroceryList:
        """Rename a list. A blank name becomes "Untitled List"."""
        correlation_id = correlation_id or create_correlation_id()

        grocery_list = await self._get_list(team, list_id, correlation_id)
        await self._require_permission(team, member, "rename", list_id, correlation_id)

        name = (name or "").strip() or "Untitled List"
        updated = await self._save(grocery_list, grocery_list.items, correlation_id, name=name)

        await self._audit(
            AuditEventType.GROCERY_LIST_RENAMED, team, member, list_id,
            f"List renamed: {name}", None, correlation_id,
        )
        return updated

    async def add_item(
        self,
        team: Team,
        member: Member,
        list_id: str,
        name: str,
        quantity: Optional[float] = None,
        unit: str = "unit",
        notes: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> GroceryList:
        """
        Append an item to a list, credited to the member by name.

        Raises:
            PermissionDeniedError: Member is not part of the team
            NotFoundError: No such list in this team
            ValueError: Blank item name
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._require_membership(team, member, ContentType.GROCERY, "add", correlation_id)
        grocery_list = await self._get_list(team, list_id, correlation_id)

        item = GroceryItem(
            name=name,
            quantity=quantity,
            unit=unit or "unit",
            notes=notes or None,
            added_by=member.name,
        )
        updated = await self._save(grocery_list, [*grocery_list.items, item], correlation_id)

        await self._audit(
            AuditEventType.GROCERY_ITEM_ADDED, team, member, list_id,
            f"Item added: {item.name}", item.id, correlation_id,
        )
        return updated

    async def update_item(
        self,
        team: Team,
        member: Member,
        list_id: str,
        item_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> GroceryList:
        """Edit name, quantity, unit or notes of an item."""
        correlation_id = correlation_id or create_correlation_id()

        grocery_list = await self._get_list(team, list_id, correlation_id)
        item = self._require_item(grocery_list, item_id)
        await self._require_permission(team, member, "edit", list_id, correlation_id)

        data = item.model_dump()
        data.update({key: value for key, value in changes.items() if key in EDITABLE_ITEM_FIELDS})
        data["updated_at"] = datetime.utcnow()
        edited = GroceryItem.model_validate(data)

        items = [edited if i.id == item_id else i for i in grocery_list.items]
        updated = await self._save(grocery_list, items, correlation_id)

        await self._audit(
            AuditEventType.GROCERY_ITEM_UPDATED, team, member, list_id,
            f"Item updated: {edited.name}", item_id, correlation_id,
        )
        return updated

    async def toggle_item(
        self,
        team: Team,
        member: Member,
        list_id: str,
        item_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> GroceryList:
        """Flip an item between bought and still needed."""
        correlation_id = correlation_id or create_correlation_id()

        grocery_list = await self._get_list(team, list_id, correlation_id)
        item = self._require_item(grocery_list, item_id)
        await self._require_permission(team, member, "update", list_id, correlation_id)

        toggled = item.model_copy(update={
            "completed": not item.completed,
            "updated_at": datetime.utcnow(),
        })
        items = [toggled if i.id == item_id else i for i in grocery_list.items]
        updated = await self._save(grocery_list, items, correlation_id)

        state = "done" if toggled.completed else "not done"
        await self._audit(
            AuditEventType.GROCERY_ITEM_UPDATED, team, member, list_id,
            f"Item marked {state}: {item.name}", item_id, correlation_id,
        )
        return updated

    async def delete_item(
        self,
        team: Team,
        member: Member,
        list_id: str,
        item_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> GroceryList:
        correlation_id = correlation_id or create_correlation_id()

        grocery_list = await self._get_list(team, list_id, correlation_id)
        item = self._require_item(grocery_list, item_id)
        await self._require_permission(team, member, "delete", list_id, correlation_id)

        items = [i for i in grocery_list.items if i.id != item_id]
        updated = await self._save(grocery_list, items, correlation_id)

        await self._audit(
            AuditEventType.GROCERY_ITEM_DELETED, team, member, list_id,
            f"Item removed: {item.name}", item_id, correlation_id,
        )
        return updated


class EventFlow(_Flow):
    """
    Orchestrates the team calendar.

    Any member may add an event and becomes its creator. Editing and
    deleting follow the team's events policy, with the creator always
    allowed to manage their own events.
    """

    def __init__(
        self,
        event_storage: EventStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._storage = event_storage

    async def _get_event(self, team: Team, event_id: str, correlation_id: UUID) -> CalendarEvent:
        event = await self._stored(self._storage.get_event(event_id), correlation_id)
        if event is None or event.team_id != team.id:
            raise NotFoundError(f"Event not found: {event_id}")
        return event

    async def _require_permission(
        self,
        team: Team,
        member: Member,
        action: str,
        event: CalendarEvent,
        correlation_id: UUID,
    ) -> None:
        await self._deny_unless(
            can_manage_content(team, member, ContentType.EVENTS, event.added_by_id),
            team,
            member,
            ContentType.EVENTS,
            action,
            f"You don't have permission to {action} this event.",
            event.id,
            correlation_id,
        )

    async def _audit(
        self,
        event_type: AuditEventType,
        team: Team,
        member: Member,
        event: CalendarEvent,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_calendar_event_change(
                event_type=event_type,
                team_id=team.id,
                actor_id=member.id,
                event_id=event.id,
                title=event.title,
                correlation_id=correlation_id,
            )

    async def list_events(
        self,
        team: Team,
        correlation_id: Optional[UUID] = None,
    ) -> list[CalendarEvent]:
        correlation_id = correlation_id or create_correlation_id()
        return await self._stored(self._storage.list_events(team.id), correlation_id)

    async def create_event(
        self,
        team: Team,
        member: Member,
        event: CalendarEvent,
        correlation_id: Optional[UUID] = None,
    ) -> CalendarEvent:
        """
        Add an event to the team calendar, created by `member`.

        Raises:
            PermissionDeniedError: Member is not part of the team
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._require_membership(team, member, ContentType.EVENTS, "add", correlation_id)

        event = event.model_copy(update={"team_id": team.id, "added_by_id": member.id})
        await self._stored(self._storage.save_event(event), correlation_id)

        await self._audit(AuditEventType.EVENT_CREATED, team, member, event, correlation_id)
        return event

    async def update_event(
        self,
        team: Team,
        member: Member,
        event_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> CalendarEvent:
        """
        Edit an event. Only EDITABLE_EVENT_FIELDS are taken from `changes`.

        Raises:
            NotFoundError: No such event in this team
            PermissionDeniedError: Member may not edit this event
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._get_event(team, event_id, correlation_id)
        await self._require_permission(team, member, "update", existing, correlation_id)

        data = existing.model_dump()
        data.update({key: value for key, value in changes.items() if key in EDITABLE_EVENT_FIELDS})
        data["updated_at"] = datetime.utcnow()
        updated = CalendarEvent.model_validate(data)

        await self._stored(self._storage.update_event(updated), correlation_id)

        await self._audit(AuditEventType.EVENT_UPDATED, team, member, updated, correlation_id)
        return updated

    async def delete_event(
        self,
        team: Team,
        member: Member,
        event_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._get_event(team, event_id, correlation_id)
        await self._require_permission(team, member, "delete", existing, correlation_id)

        deleted = await self._stored(self._storage.delete_event(event_id), correlation_id)

        if deleted:
            await self._audit(AuditEventType.EVENT_DELETED, team, member, existing, correlation_id)
        return deleted

    async def export_calendar(
        self,
        team: Team,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[str, str]:
        """
        Every team event as one ICS document.

        Returns:
            (filename, ics_document)

        Raises:
            ValueError: The team has no events
        """
        events = await self.list_events(team, correlation_id)
        if not events:
            raise ValueError("No events to export.")
        return calendar_filename(team.name), generate_ics_file(events, team.name)

    @staticmethod
    def export_event(team: Team, event: CalendarEvent) -> tuple[str, str]:
        """A single event as an ICS document: (filename, ics_document)."""
        return event_filename(event), generate_ics_file(event, team.name)


class TeamFlow(_Flow):
    """
    Orchestrates team administration.

    Team details and content policies need settings access
    (can_manage_team_settings). Role changes and removals follow the
    fixed member administration rules.
    """

    def __init__(
        self,
        team_storage: TeamStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(audit_logger)
        self._storage = team_storage

    async def _require_settings_access(
        self,
        team: Team,
        member: Member,
        action: str,
        correlation_id: UUID,
    ) -> None:
        await self._deny_unless(
            can_manage_team_settings(team, member),
            team,
            member,
            "team_settings",
            action,
            "You don't have permission to change the team settings.",
            team.id,
            correlation_id,
        )

    async def _save(self, team: Team, correlation_id: UUID, **updates: Any) -> Team:
        updated = team.model_copy(update={**updates, "updated_at": datetime.utcnow()})
        await self._stored(self._storage.save_team(updated), correlation_id)
        return updated

    async def get_team(
        self,
        team_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Team]:
        correlation_id = correlation_id or create_correlation_id()
        return await self._stored(self._storage.get_team(team_id), correlation_id)

    async def save_new_team(
        self,
        team: Team,
        correlation_id: Optional[UUID] = None,
    ) -> Team:
        """Store a freshly created team as given."""
        correlation_id = correlation_id or create_correlation_id()
        await self._stored(self._storage.save_team(team), correlation_id)
        return team

    async def update_details(
        self,
        team: Team,
        member: Member,
        name: str,
        description: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Team:
        """
        Rename the team and set its description.

        Raises:
            PermissionDeniedError: Member may not change the team settings
            ValueError: Blank team name
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._require_settings_access(team, member, "edit", correlation_id)

        name = (name or "").strip()
        if not name:
            raise ValueError("Team name is required.")

        updated = await self._save(
            team, correlation_id, name=name, description=description or None,
        )
        if self._audit_logger:
            await self._audit_logger.log_team_settings_updated(
                team_id=team.id,
                actor_id=member.id,
                changes={"name": name},
                correlation_id=correlation_id,
            )
        return updated

    async def set_content_policy(
        self,
        team: Team,
        member: Member,
        content_type: Union[ContentType, str],
        policy: Union[ContentPolicy, str],
        correlation_id: Optional[UUID] = None,
    ) -> Team:
        """
        Set who may manage one content type: "admin" or "everyone".

        Raises:
            PermissionDeniedError: Member may not change the team settings
            ValueError: Unknown content type or policy
        """
        correlation_id = correlation_id or create_correlation_id()

        content_type = ContentType(content_type)
        policy = ContentPolicy(policy)

        await self._require_settings_access(team, member, "edit", correlation_id)

        content_management = {
            **team.settings.content_management,
            content_type.value: policy.value,
        }
        settings = team.settings.model_copy(update={"content_management": content_management})
        updated = await self._save(team, correlation_id, settings=settings)

        if self._audit_logger:
            await self._audit_logger.log_team_settings_updated(
                team_id=team.id,
                actor_id=member.id,
                changes={"content_management": {content_type.value: policy.value}},
                correlation_id=correlation_id,
            )
        return updated

    async def change_member_role(
        self,
        team: Team,
        actor: Member,
        member_id: str,
        role: Union[Role, str],
        correlation_id: Optional[UUID] = None,
    ) -> Team:
        """
        Promote a member to admin or demote an admin to member.

        Raises:
            NotFoundError: No such member
            PermissionDeniedError: Actor may not change this member's role
            ValueError: The new role is not admin or member
        """
        correlation_id = correlation_id or create_correlation_id()

        role = Role(role)
        if role == Role.OWNER:
            raise ValueError("Ownership can't be assigned through a role change.")

        target = team.find_member(member_id)
        if target is None:
            raise NotFoundError(f"Member not found: {member_id}")

        await self._deny_unless(
            can_change_member_role(actor, target),
            team,
            actor,
            "members",
            "change role of",
            "You don't have permission to change this member's role.",
            member_id,
            correlation_id,
        )

        members = [
            m.model_copy(update={"role": role}) if m.id == member_id else m
            for m in team.members
        ]
        updated = await self._save(team, correlation_id, members=members)

        if self._audit_logger:
            await self._audit_logger.log_member_change(
                event_type=AuditEventType.MEMBER_ROLE_CHANGED,
                team_id=team.id,
                actor_id=actor.id,
                member_id=member_id,
                details={"role": role.value},
                correlation_id=correlation_id,
            )
        return updated

    async def remove_member(
        self,
        team: Team,
        actor: Member,
        member_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Team:
        """
        Remove a member from the team.

        Raises:
            NotFoundError: No such member
            PermissionDeniedError: Actor may not remove this member
        """
        correlation_id = correlation_id or create_correlation_id()

        target = team.find_member(member_id)
        if target is None:
            raise NotFoundError(f"Member not found: {member_id}")

        await self._deny_unless(
            can_remove_member(actor, target),
            team,
            actor,
            "members",
            "remove",
            "You don't have permission to remove this member.",
            member_id,
            correlation_id,
        )

        members = [m for m in team.members if m.id != member_id]
        updated = await self._save(team, correlation_id, members=members)

        if self._audit_logger:
            await self._audit_logger.log_member_change(
                event_type=AuditEventType.MEMBER_REMOVED,
                team_id=team.id,
                actor_id=actor.id,
                member_id=member_id,
                correlation_id=correlation_id,
            )
        return updated


class AppComponents(NamedTuple):
    expense_flow: ExpenseFlow
    settlement_flow: SettlementFlow
    grocery_flow: GroceryFlow
    event_flow: EventFlow
    team_flow: TeamFlow
    audit_logger: AuditLogger


def create_app_components(use_storage: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets storage.
                    Falls back to in-memory storage when it isn't
                    configured, or when False.
    """
    expense_storage: ExpenseStorageInterface
    grocery_storage: GroceryStorageInterface
    event_storage: EventStorageInterface
    team_storage: TeamStorageInterface
    audit_logger: AuditLogger

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            expense_storage = GoogleSheetsExpenseStorage(sheets_client)
            grocery_storage = GoogleSheetsGroceryStorage(sheets_client)
            event_storage = GoogleSheetsEventStorage(sheets_client)
            team_storage = GoogleSheetsTeamStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            use_storage = False

    if not use_storage:
        expense_storage = InMemoryExpenseStorage()
        grocery_storage = InMemoryGroceryStorage()
        event_storage = InMemoryEventStorage()
        team_storage = InMemoryTeamStorage()
        audit_logger = AuditLogger()  # Local-only logging

    return AppComponents(
        expense_flow=ExpenseFlow(
            expense_storage=expense_storage,
            audit_logger=audit_logger,
        ),
        settlement_flow=SettlementFlow(
            expense_storage=expense_storage,
            audit_logger=audit_logger,
        ),
        grocery_flow=GroceryFlow(
            grocery_storage=grocery_storage,
            audit_logger=audit_logger,
        ),
        event_flow=EventFlow(
            event_storage=event_storage,
            audit_logger=audit_logger,
        ),
        team_flow=TeamFlow(
            team_storage=team_storage,
            audit_logger=audit_logger,
        ),
        audit_logger=audit_logger,
    )
