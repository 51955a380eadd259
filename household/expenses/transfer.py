"""
Expense Export and Import

Exports are a JSON document holding the team id and name, the export
time and every expense. Imports read the same shape back into another
(or the same) team: each record gets a fresh id and the importing team's
id, everything else is taken as written.
"""

import json
import re
from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional, Union

from pydantic import ValidationError

from household.models.expense import Expense, ExpenseExport
from household.models.team import Team


# Fields carried over from an imported record
IMPORTED_FIELDS = [
    "description",
    "amount",
    "currency",
    "primaryAmount",
    "primaryCurrency",
    "category",
    "date",
    "isShared",
    "shares",
    "paidBy",
    "paidById",
]


class ImportFormatError(ValueError):
    """The import document is not an expense export."""
    pass


def team_slug(team: Team) -> str:
    return re.sub(r"\s+", "-", team.name.lower())


def export_filename(team: Team, on: Optional[date] = None) -> str:
    """e.g. expenses-the-flat-2024-05-01.json"""
    on = on or date.today()
    return f"expenses-{team_slug(team)}-{on.isoformat()}.json"


def build_export(
    team: Team,
    expenses: Iterable[Expense],
    exported_at: Optional[datetime] = None,
) -> ExpenseExport:
    return ExpenseExport(
        team_id=team.id,
        team_name=team.name,
        export_date=exported_at or datetime.utcnow(),
        expenses=list(expenses),
    )


def dump_export(export: ExpenseExport) -> str:
    """Serialize with the stored (camelCase) keys, indented."""
    return export.model_dump_json(by_alias=True, indent=2)


def parse_import(content: Union[str, bytes], team_id: str) -> list[Expense]:
    """
    Read an export document into expenses for `team_id`.

    Raises:
        ImportFormatError: Not JSON, no "expenses" list, or a record
                           that can't be read as an expense
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ImportFormatError(f"Import file is not valid JSON: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("expenses"), list):
        raise ImportFormatError("Invalid data format")

    expenses = []
    for index, record in enumerate(data["expenses"]):
        if not isinstance(record, dict):
            raise ImportFormatError(f"Expense #{index + 1} is not an object")

        fields = {key: record[key] for key in IMPORTED_FIELDS if key in record}
        if fields.get("shares") is None:
            fields["shares"] = []
        fields["teamId"] = team_id

        try:
            expenses.append(Expense.model_validate(fields))
        except ValidationError as e:
            raise ImportFormatError(f"Expense #{index + 1} is invalid: {e}")

    return expenses
