"""
Debt Display

Turns debts into lines like "Alice pays Bob $30.00". Member ids are
resolved through the team's member list; a debt that mentions someone
no longer on the team is left out of the display.
"""

from collections.abc import Iterable
from typing import Optional

from household.currency import format_currency
from household.models.expense import Debt
from household.models.team import Team


def describe_debts(
    team: Team,
    debts: Iterable[Debt],
    verb: str = "pays",
    currency: Optional[str] = None,
) -> list[str]:
    """
    Render debts as "<from> <verb> <to> <amount>" lines.

    Args:
        team: Team whose members name the ids
        debts: Raw debts or settlement transactions
        verb: "owes" for raw debts, "pays" for a settlement plan
        currency: Display currency, defaults to the team's primary currency
    """
    currency = currency or team.primary_currency
    lines = []

    for debt in debts:
        from_member = team.find_member(debt.from_id)
        to_member = team.find_member(debt.to_id)
        if from_member is None or to_member is None:
            continue

        lines.append(
            f"{from_member.name} {verb} {to_member.name} "
            f"{format_currency(debt.amount, currency)}"
        )

    return lines
