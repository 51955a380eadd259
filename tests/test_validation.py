"""Tests for expense validation."""

import pytest

from household.models.expense import Expense
from household.validation import ExpenseValidator


@pytest.fixture
def validator():
    return ExpenseValidator()


class TestFieldValidation:
    """Stage 1: field checks."""

    def test_valid_personal_expense(self, validator, team):
        expense = Expense(description="Lunch", amount=12, paid_by_id="m1")

        result = validator.validate(expense, team)

        assert result.is_valid is True
        assert result.issues == []

    def test_amount_must_be_positive(self, validator, team):
        expense = Expense(description="Lunch", amount=0, paid_by_id="m1")

        result = validator.validate(expense, team)

        assert result.is_valid is False
        assert "Please enter a valid amount." in result.error_messages

    def test_description_required(self, validator, team):
        expense = Expense(description="  ", amount=5, paid_by_id="m1")

        result = validator.validate(expense, team)

        assert result.is_valid is False
        assert result.issues[0].field == "description"

    def test_unsupported_currency(self, validator, team):
        expense = Expense(description="Sushi", amount=5, currency="JPY", paid_by_id="m1")

        result = validator.validate(expense, team)

        assert result.is_valid is False
        assert result.issues[0].issue_type == "unsupported"

    def test_unknown_currency_code_is_a_warning(self, validator, team):
        team.settings.currency.supported.append("XYZ")
        expense = Expense(description="Odd", amount=5, currency="XYZ", paid_by_id="m1")

        result = validator.validate(expense, team)

        assert result.is_valid is True
        assert len(result.warnings) == 1

    def test_share_stage_skipped_when_fields_fail(self, validator, team):
        expense = Expense(description="", amount=5, paid_by_id="ghost")

        result = validator.validate(expense, team)

        assert [issue.field for issue in result.issues] == ["description"]


class TestShareValidation:
    """Stage 2: payer and share checks."""

    def test_valid_shared_expense(self, validator, team, make_expense):
        expense = make_expense("o1", {"o1": 50, "m1": 50})

        assert validator.validate(expense, team).is_valid is True

    def test_payer_must_be_member(self, validator, team):
        expense = Expense(description="Gift", amount=5, paid_by_id="ghost")

        result = validator.validate(expense, team)

        assert result.is_valid is False
        assert result.issues[0].issue_type == "unknown_member"

    def test_shared_expense_needs_shares(self, validator, team):
        expense = Expense(description="Gas", amount=40, paid_by_id="o1", is_shared=True)

        result = validator.validate(expense, team)

        assert "Please add at least one share for shared expenses." in result.error_messages

    def test_shares_must_total_100(self, validator, team, make_expense):
        expense = make_expense("o1", {"o1": 30, "m1": 30}, amount=100)

        result = validator.validate(expense, team)

        assert result.is_valid is False
        assert "Total shares must equal 100%." in result.error_messages

    def test_share_out_of_range(self, validator, team):
        expense = Expense.model_validate({
            "description": "Refund",
            "amount": 10,
            "paidById": "o1",
            "isShared": True,
            "shares": [
                {"memberId": "o1", "share": 150, "amount": 15},
                {"memberId": "m1", "share": -50, "amount": -5},
            ],
        })

        result = validator.validate(expense, team)

        assert result.error_count == 2

    def test_unknown_share_member_is_a_warning(self, validator, team, make_expense):
        expense = make_expense("o1", {"o1": 50, "ghost": 50})

        result = validator.validate(expense, team)

        assert result.is_valid is True
        assert any("ghost" in warning for warning in result.warnings)

    def test_share_amounts_drifting_from_total(self, validator, team):
        expense = Expense.model_validate({
            "description": "Dinner",
            "amount": 100,
            "paidById": "o1",
            "isShared": True,
            "shares": [
                {"memberId": "o1", "share": 50, "amount": 50},
                {"memberId": "m1", "share": 50, "amount": 40},
            ],
        })

        result = validator.validate(expense, team)

        assert result.is_valid is True
        assert result.warnings


class TestSummary:
    """Tests for the user-facing summary."""

    def test_all_passed(self, validator, team):
        result = validator.validate(Expense(description="Tea", amount=2, paid_by_id="m1"), team)

        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    def test_lists_errors_and_fixes(self, validator, team):
        result = validator.validate(Expense(description="Tea", amount=0, paid_by_id="m1"), team)

        summary = validator.get_user_friendly_summary(result)

        assert "Please fix the following" in summary
        assert "Please enter a valid amount." in summary
        assert "greater than zero" in summary
