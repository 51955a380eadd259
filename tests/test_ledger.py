"""Tests for raw debt extraction and debt display."""

from household.ledger import compute_raw_debts, describe_debts
from household.models.expense import Debt, Expense


class TestComputeRawDebts:
    """Tests for compute_raw_debts."""

    def test_no_expenses(self):
        assert compute_raw_debts([]) == []

    def test_payer_own_share_is_excluded(self):
        expense = Expense.model_validate({
            "amount": 10,
            "isShared": True,
            "paidById": "A",
            "shares": [{"memberId": "A", "share": 100, "amount": 0}],
        })
        assert compute_raw_debts([expense]) == []

    def test_one_debt_per_non_payer_share(self, make_expense):
        expense = make_expense("A", {"A": 30, "B": 30, "C": 40})

        debts = compute_raw_debts([expense])

        assert debts == [
            Debt(from_id="B", to_id="A", amount=30),
            Debt(from_id="C", to_id="A", amount=40),
        ]

    def test_non_shared_expense_contributes_nothing(self, make_expense):
        expense = make_expense("A", {"B": 50}, is_shared=False)
        assert compute_raw_debts([expense]) == []

    def test_zero_and_negative_amounts_are_skipped(self, make_expense):
        expense = make_expense("A", {"B": 0, "C": -5, "D": 10}, amount=10)

        debts = compute_raw_debts([expense])

        assert debts == [Debt(from_id="D", to_id="A", amount=10)]

    def test_same_pair_is_not_merged(self, make_expense):
        first = make_expense("A", {"B": 10})
        second = make_expense("A", {"B": 15})

        debts = compute_raw_debts([first, second])

        assert [d.amount for d in debts] == [10, 15]

    def test_order_follows_expenses_then_shares(self, make_expense):
        first = make_expense("A", {"C": 1, "B": 2})
        second = make_expense("B", {"A": 3})

        debts = compute_raw_debts([first, second])

        assert [(d.from_id, d.to_id) for d in debts] == [
            ("C", "A"), ("B", "A"), ("A", "B"),
        ]

    def test_shares_are_taken_as_given(self):
        # Percentages summing to 150 are not rejected here
        expense = Expense.model_validate({
            "amount": 100,
            "isShared": True,
            "paidById": "A",
            "shares": [
                {"memberId": "B", "share": 75, "amount": 75},
                {"memberId": "C", "share": 75, "amount": 75},
            ],
        })

        assert sum(d.amount for d in compute_raw_debts([expense])) == 150

    def test_malformed_shares_contribute_nothing(self):
        broken = Expense.model_validate({
            "amount": 100,
            "isShared": True,
            "paidById": "A",
            "shares": [{"memberId": "B", "share": "lots", "amount": None}],
        })
        not_a_list = Expense.model_validate({
            "amount": 100,
            "isShared": True,
            "paidById": "A",
            "shares": "B:100",
        })

        numeric_name = Expense.model_validate({
            "amount": 10,
            "isShared": True,
            "paidById": "A",
            "shares": [{"memberId": "B", "memberName": 7, "share": 50, "amount": 5}],
        })

        assert broken.shares == []
        assert numeric_name.shares == []
        assert compute_raw_debts([broken, not_a_list, numeric_name]) == []

    def test_missing_member_name_keeps_the_share(self):
        expense = Expense.model_validate({
            "amount": 10,
            "isShared": True,
            "paidById": "A",
            "shares": [{"memberId": "B", "memberName": None, "share": 50, "amount": 5}],
        })

        assert expense.shares[0].member_name == ""
        assert compute_raw_debts([expense]) == [Debt(from_id="B", to_id="A", amount=5)]


class TestDescribeDebts:
    """Tests for the debt display lines."""

    def test_names_and_currency(self, team):
        debts = [Debt(from_id="m1", to_id="o1", amount=30)]

        assert describe_debts(team, debts) == ["Mia pays Olivia $30.00"]

    def test_owes_verb(self, team):
        debts = [Debt(from_id="m1", to_id="o1", amount=1234.5)]

        assert describe_debts(team, debts, verb="owes") == ["Mia owes Olivia $1,234.50"]

    def test_unknown_members_are_left_out(self, team):
        debts = [
            Debt(from_id="gone", to_id="o1", amount=5),
            Debt(from_id="m1", to_id="a1", amount=7),
        ]

        assert describe_debts(team, debts) == ["Mia pays Arjun $7.00"]

    def test_explicit_currency(self, team):
        debts = [Debt(from_id="m1", to_id="o1", amount=3)]

        assert describe_debts(team, debts, currency="EUR") == ["Mia pays Olivia €3.00"]
