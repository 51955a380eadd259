"""Debt ledger and settlement package."""

from household.ledger.debts import compute_raw_debts
from household.ledger.optimizer import net_balances, optimize
from household.ledger.render import describe_debts

__all__ = [
    "compute_raw_debts",
    "describe_debts",
    "net_balances",
    "optimize",
]
