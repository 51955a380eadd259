"""
Raw Debt Extraction

Turns shared expenses into the pairwise obligations implied by their
shares: whoever owns a share owes it to whoever paid.

Nothing is merged here. Two expenses between the same two people give
two separate debts, which is what the "original debts" view shows.
"""

from collections.abc import Iterable

from household.models.expense import Debt, Expense


def compute_raw_debts(expenses: Iterable[Expense]) -> list[Debt]:
    """
    Derive raw debts from a team's expenses.

    For every shared expense, each share held by someone other than the
    payer and with a positive amount becomes one Debt from the share
    holder to the payer. Non-shared expenses contribute nothing.

    Output follows expense order, then share order.
    """
    debts: list[Debt] = []

    for expense in expenses:
        if not expense.is_shared or not expense.shares:
            continue

        for share in expense.shares:
            # The payer's own share is not a transfer
            if share.member_id == expense.paid_by_id:
                continue
            if share.amount <= 0:
                continue

            debts.append(Debt(
                from_id=share.member_id,
                to_id=expense.paid_by_id,
                amount=share.amount,
            ))

    return debts
