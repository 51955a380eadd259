"""
Expense Views

Filtering and totals for the expenses page. Totals are in the team's
primary currency: expenses recorded in it count their own amount, all
others their converted primary_amount.
"""

from collections.abc import Iterable
from typing import Optional

from household.models.expense import Expense
from household.models.team import Team


ALL = "all"


def filter_expenses(
    expenses: Iterable[Expense],
    category: str = ALL,
    tab: str = ALL,
) -> list[Expense]:
    """
    Filter by category, then by payer.

    `tab` is either "all" or a member id; a member id keeps only the
    expenses that member paid.
    """
    result = []
    for expense in expenses:
        if category != ALL and expense.category != category:
            continue
        if tab != ALL and expense.paid_by_id != tab:
            continue
        result.append(expense)
    return result


def amount_in_primary_currency(expense: Expense, team: Team) -> float:
    if expense.currency == team.primary_currency:
        return expense.amount
    return expense.primary_amount


def total_in_primary_currency(
    expenses: Iterable[Expense],
    team: Optional[Team],
) -> float:
    if team is None:
        return 0.0
    return sum(amount_in_primary_currency(expense, team) for expense in expenses)


def expenses_by_category(
    expenses: Iterable[Expense],
    team: Optional[Team],
) -> dict[str, float]:
    """
    Category -> total in the primary currency.

    Every category seen gets an entry, even without a team to price it in.
    """
    totals: dict[str, float] = {}

    for expense in expenses:
        totals.setdefault(expense.category, 0.0)
        if team is None:
            continue
        totals[expense.category] += amount_in_primary_currency(expense, team)

    return totals
