"""
Expense and Debt Models

An Expense is money one member fronted for the team. A shared expense
is split across members by percentage shares; each share also carries
the money amount in the expense's own currency.

Debts and settlement transactions are derived values: they are never
stored, only recomputed from the current set of expenses.

IMPORTANT: Expense records come back from storage exactly as they were
written. Share percentages that don't add up to 100 are taken as given.
Malformed share lists are coerced to empty instead of failing the load.
"""

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


EXPENSE_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Housing",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Healthcare",
    "Education",
    "Travel",
    "Other",
]


def _new_id() -> str:
    return uuid4().hex


def _is_number(value: Any) -> bool:
    """True for real numeric values (or numeric strings), False for bools and NaN."""
    if isinstance(value, bool) or value is None:
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(number)


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseShare(BaseModel):
    """One member's part of a shared expense."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    member_id: str = Field(
        ...,
        description="Member who owes this share"
    )
    member_name: str = Field(
        default="",
        description="Display name at the time the share was recorded"
    )
    share: float = Field(
        ...,
        description="Percentage of the expense (0-100)"
    )
    amount: float = Field(
        ...,
        description="Money amount, same currency as the expense"
    )


class Expense(BaseModel):
    """
    An expense recorded by a team member.

    primary_amount/primary_currency hold the amount converted to the
    team's reporting currency when the expense was created or edited.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(default_factory=_new_id)
    description: str = ""
    amount: float = Field(
        ...,
        description="Amount in the expense's own currency"
    )
    currency: str = Field(
        default="USD",
        description="Currency code the expense was recorded in"
    )
    primary_amount: Optional[float] = None
    primary_currency: Optional[str] = None
    category: str = "Other"
    date: datetime = Field(default_factory=datetime.utcnow)
    paid_by_id: str = Field(
        ...,
        description="Member who fronted the money"
    )
    paid_by: str = Field(
        default="",
        description="Payer display name"
    )
    is_shared: bool = False
    shares: list[ExpenseShare] = Field(default_factory=list)
    team_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('shares', mode='before')
    @classmethod
    def tolerate_malformed_shares(cls, v: Any) -> Any:
        """
        A share list that isn't a list, or holds an entry without a member,
        with a non-numeric share/amount or a non-text member name,
        contributes nothing. A null member name loads as "".
        """
        if not isinstance(v, (list, tuple)):
            return []
        shares = []
        for entry in v:
            if isinstance(entry, ExpenseShare):
                shares.append(entry)
                continue
            if not isinstance(entry, Mapping):
                return []
            member_id = entry.get("memberId", entry.get("member_id"))
            if not isinstance(member_id, str) or not member_id:
                return []
            if not _is_number(entry.get("share")) or not _is_number(entry.get("amount")):
                return []

            entry = dict(entry)
            name_key = "member_name" if "member_name" in entry else "memberName"
            member_name = entry.get(name_key)
            if member_name is None:
                entry[name_key] = ""
            elif not isinstance(member_name, str):
                return []
            shares.append(entry)
        return shares

    @model_validator(mode='after')
    def default_primary_amount(self) -> 'Expense':
        """Expenses recorded in the primary currency carry no separate conversion."""
        if self.primary_amount is None:
            self.primary_amount = self.amount
        if self.primary_currency is None:
            self.primary_currency = self.currency
        return self

    @property
    def share_total(self) -> float:
        """Sum of share percentages."""
        return sum(share.share for share in self.shares)


# =============================================================================
# DERIVED VALUES
# =============================================================================

class Debt(BaseModel):
    """
    An obligation: from_id owes to_id `amount` in the team's primary currency.

    Also used for settlement transactions, where it means one payment.
    Serialized with the keys "from", "to" and "amount".
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_id: str = Field(..., alias="from")
    to_id: str = Field(..., alias="to")
    amount: float


class SettlementPlan(BaseModel):
    """
    Everything the debt tracking view shows for a team.

    raw_debts keeps one line per share; transactions is the optimized
    plan. The *_lines fields are the rendered text, with debts naming
    unknown members left out.
    """

    team_id: str
    currency: str
    computed_at: datetime = Field(default_factory=datetime.utcnow)
    expense_count: int = Field(default=0, ge=0)
    raw_debts: list[Debt] = Field(default_factory=list)
    transactions: list[Debt] = Field(default_factory=list)
    debt_lines: list[str] = Field(default_factory=list)
    settlement_lines: list[str] = Field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return not self.raw_debts


class ExpenseExport(BaseModel):
    """Document written by an expense export and read back by an import."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    team_id: str
    team_name: str
    export_date: datetime = Field(default_factory=datetime.utcnow)
    expenses: list[Expense] = Field(default_factory=list)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unsupported')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of validating an expense before it is written."""

    expense_id: str
    validated_at: datetime = Field(default_factory=datetime.utcnow)
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]
