"""
Settlement Optimizer

Reduces a list of debts to a short list of payments that settles every
member's net balance. This is the greedy min-cash-flow approach:

1. Net each member's balance (negative = owes, positive = is owed)
2. Drop members who are already settled
3. Sort ascending by balance, largest debtor first, largest creditor last
4. Walk inward from both ends, each step settling at least one side

DESIGN DECISION: The sort is stable and balances keep first-seen member
order, so members with equal balances are paired in the order they
first appeared in the debt list. Tests depend on this ordering.

Amounts are floats and are never rounded here. By default a balance is
settled only when it is exactly zero; pass a positive tolerance to treat
near-zero balances (floating point drift) as settled.
"""

from collections.abc import Iterable

from household.models.expense import Debt


def net_balances(debts: Iterable[Debt]) -> dict[str, float]:
    """
    Net balance per member, in first-seen order.

    Each debt lowers the debtor's balance and raises the creditor's.
    """
    balances: dict[str, float] = {}

    for debt in debts:
        balances[debt.from_id] = balances.get(debt.from_id, 0.0) - debt.amount
        balances[debt.to_id] = balances.get(debt.to_id, 0.0) + debt.amount

    return balances


def _is_settled(balance: float, tolerance: float) -> bool:
    return abs(balance) <= tolerance


def optimize(debts: Iterable[Debt], tolerance: float = 0.0) -> list[Debt]:
    """
    Produce a settlement plan for the given debts.

    Args:
        debts: Raw debts, in any order
        tolerance: Balances within this distance of zero count as settled,
                   and two magnitudes this close count as equal.
                   0.0 keeps exact comparisons.

    Returns:
        Payments in emission order. At most (unsettled members - 1) of them,
        each with a strictly positive amount.
    """
    tolerance = max(tolerance, 0.0)

    people = [
        {"member": member, "balance": balance}
        for member, balance in net_balances(debts).items()
        if not _is_settled(balance, tolerance)
    ]
    people.sort(key=lambda person: person["balance"])

    transactions: list[Debt] = []
    i = 0
    j = len(people) - 1

    while i < j:
        debtor = people[i]
        creditor = people[j]

        owed = abs(debtor["balance"])
        credit = abs(creditor["balance"])

        if abs(owed - credit) <= tolerance:
            # Both sides settle in one payment
            transactions.append(Debt(
                from_id=debtor["member"],
                to_id=creditor["member"],
                amount=owed,
            ))
            debtor["balance"] = 0.0
            creditor["balance"] = 0.0
            i += 1
            j -= 1
        elif owed < credit:
            # Debtor pays everything they owe, creditor still has credit left
            transactions.append(Debt(
                from_id=debtor["member"],
                to_id=creditor["member"],
                amount=owed,
            ))
            creditor["balance"] += debtor["balance"]
            debtor["balance"] = 0.0
            i += 1
        else:
            # Creditor is made whole, debtor still owes the rest
            transactions.append(Debt(
                from_id=debtor["member"],
                to_id=creditor["member"],
                amount=credit,
            ))
            debtor["balance"] += creditor["balance"]
            creditor["balance"] = 0.0
            j -= 1

    return transactions
