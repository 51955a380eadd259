"""Validation package."""

from household.validation.validator import ExpenseValidator

__all__ = ["ExpenseValidator"]
