"""Shared fixtures: a small household and helpers to build expenses."""

import pytest

from household.models.expense import Expense, ExpenseShare
from household.models.team import Member, Role, Team


@pytest.fixture
def owner():
    return Member(id="o1", name="Olivia", role=Role.OWNER)


@pytest.fixture
def admin():
    return Member(id="a1", name="Arjun", role=Role.ADMIN)


@pytest.fixture
def member():
    return Member(id="m1", name="Mia", role=Role.MEMBER)


@pytest.fixture
def other_member():
    return Member(id="m2", name="Noah", role=Role.MEMBER)


@pytest.fixture
def team(owner, admin, member, other_member):
    return Team(
        id="t1",
        name="The Flat",
        owner_id=owner.id,
        members=[owner, admin, member, other_member],
        settings={
            "currency": {"primary": "USD", "supported": ["USD", "EUR"]},
            "content_management": {
                "expenses": "admin",
                "grocery": "admin",
                "events": "everyone",
            },
        },
    )


def build_shared_expense(paid_by_id, splits, amount=None, **kwargs):
    """
    Shared expense paid by `paid_by_id`.

    `splits` maps member id -> money amount; percentages follow from the total.
    """
    total = amount if amount is not None else sum(splits.values())
    shares = [
        ExpenseShare(
            member_id=member_id,
            share=(value / total) * 100 if total else 0,
            amount=value,
        )
        for member_id, value in splits.items()
    ]
    fields = {
        "description": "Groceries",
        "amount": total,
        "paid_by_id": paid_by_id,
        "is_shared": True,
        "shares": shares,
        "team_id": "t1",
    }
    fields.update(kwargs)
    return Expense(**fields)


@pytest.fixture
def make_expense():
    return build_shared_expense
