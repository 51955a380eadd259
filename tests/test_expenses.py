"""Tests for share editing, expense views and export/import."""

import json
from datetime import date, datetime

import pytest

from household.expenses import (
    ImportFormatError,
    apply_share,
    build_export,
    dump_export,
    expenses_by_category,
    export_filename,
    filter_expenses,
    parse_import,
    share_amount,
    total_in_primary_currency,
)
from household.models.expense import Expense, ExpenseShare


class TestShares:
    """Tests for share editing."""

    def test_share_amount(self):
        assert share_amount(25, 80) == 20

    def test_adds_new_share_named_after_member(self, team):
        shares = apply_share([], team, "m1", 40, 50)

        assert shares == [ExpenseShare(member_id="m1", member_name="Mia", share=40, amount=20)]

    def test_updates_existing_share(self, team):
        shares = apply_share([], team, "m1", 40, 50)
        shares = apply_share(shares, team, "m2", 60, 50)

        updated = apply_share(shares, team, "m1", 50, 50)

        assert [(s.member_id, s.share, s.amount) for s in updated] == [
            ("m1", 50, 25), ("m2", 60, 30),
        ]
        # Input list is left alone
        assert shares[0].share == 40

    def test_unknown_member_leaves_shares_unchanged(self, team):
        assert apply_share([], team, "ghost", 100, 10) == []


class TestExpenseViews:
    """Tests for filtering and totals."""

    @pytest.fixture
    def expenses(self):
        return [
            Expense(description="Rent", amount=1000, category="Housing", paid_by_id="o1"),
            Expense(description="Pizza", amount=30, category="Food & Dining", paid_by_id="m1"),
            Expense(
                description="Croissants",
                amount=10,
                currency="EUR",
                primary_amount=20,
                primary_currency="USD",
                category="Food & Dining",
                paid_by_id="m1",
            ),
        ]

    def test_filter_all(self, expenses):
        assert filter_expenses(expenses) == expenses

    def test_filter_by_category(self, expenses):
        result = filter_expenses(expenses, category="Food & Dining")
        assert [e.description for e in result] == ["Pizza", "Croissants"]

    def test_filter_by_payer(self, expenses):
        result = filter_expenses(expenses, tab="o1")
        assert [e.description for e in result] == ["Rent"]

    def test_filter_by_category_and_payer(self, expenses):
        assert filter_expenses(expenses, category="Housing", tab="m1") == []

    def test_total_uses_primary_amount_for_foreign_currency(self, expenses, team):
        assert total_in_primary_currency(expenses, team) == 1050

    def test_total_without_team(self, expenses):
        assert total_in_primary_currency(expenses, None) == 0.0

    def test_by_category(self, expenses, team):
        assert expenses_by_category(expenses, team) == {
            "Housing": 1000,
            "Food & Dining": 50,
        }

    def test_by_category_without_team(self, expenses):
        assert expenses_by_category(expenses, None) == {
            "Housing": 0.0,
            "Food & Dining": 0.0,
        }


class TestExportImport:
    """Tests for expense export and import."""

    def test_export_filename(self, team):
        assert export_filename(team, on=date(2024, 5, 1)) == "expenses-the-flat-2024-05-01.json"

    def test_export_document(self, team, make_expense):
        expense = make_expense("o1", {"m1": 20}, amount=40, description="Dinner")
        export = build_export(team, [expense], exported_at=datetime(2024, 5, 1, 12))

        document = json.loads(dump_export(export))

        assert document["teamId"] == "t1"
        assert document["teamName"] == "The Flat"
        assert document["exportDate"].startswith("2024-05-01T12:00:00")
        assert document["expenses"][0]["paidById"] == "o1"
        assert document["expenses"][0]["shares"][0]["memberId"] == "m1"

    def test_import_assigns_fresh_ids_and_team(self, team, make_expense):
        expense = make_expense("o1", {"m1": 20}, amount=40, description="Dinner")
        document = dump_export(build_export(team, [expense]))

        imported = parse_import(document, "t2")

        assert len(imported) == 1
        assert imported[0].id != expense.id
        assert imported[0].team_id == "t2"
        assert imported[0].description == "Dinner"
        assert imported[0].shares[0].amount == 20

    def test_import_missing_shares(self):
        content = json.dumps({"expenses": [
            {"description": "Taxi", "amount": 12, "paidById": "m1", "shares": None},
        ]})

        imported = parse_import(content, "t1")

        assert imported[0].shares == []

    def test_import_not_json(self):
        with pytest.raises(ImportFormatError):
            parse_import("not json", "t1")

    def test_import_without_expenses_list(self):
        with pytest.raises(ImportFormatError, match="Invalid data format"):
            parse_import(json.dumps({"expenses": "nope"}), "t1")

    def test_import_invalid_record(self):
        content = json.dumps({"expenses": [{"description": "No amount"}]})

        with pytest.raises(ImportFormatError, match="Expense #1"):
            parse_import(content, "t1")
