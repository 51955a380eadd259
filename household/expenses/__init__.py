"""Expense helpers package."""

from household.expenses.shares import apply_share, share_amount
from household.expenses.summary import (
    amount_in_primary_currency,
    expenses_by_category,
    filter_expenses,
    total_in_primary_currency,
)
from household.expenses.transfer import (
    ImportFormatError,
    build_export,
    dump_export,
    export_filename,
    parse_import,
    team_slug,
)

__all__ = [
    "ImportFormatError",
    "amount_in_primary_currency",
    "apply_share",
    "build_export",
    "dump_export",
    "expenses_by_category",
    "export_filename",
    "filter_expenses",
    "parse_import",
    "share_amount",
    "team_slug",
    "total_in_primary_currency",
]
