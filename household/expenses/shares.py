"""Share editing for shared expenses."""

from household.models.expense import ExpenseShare
from household.models.team import Team


def share_amount(percent: float, total: float) -> float:
    """Money amount of a percentage share of `total`."""
    return (percent / 100) * total


def apply_share(
    shares: list[ExpenseShare],
    team: Team,
    member_id: str,
    percent: float,
    total: float,
) -> list[ExpenseShare]:
    """
    Set a member's share of an expense.

    Updates the member's existing entry, or appends a new one named after
    the team member. A member id the team doesn't know leaves the shares
    unchanged. Returns a new list.
    """
    if any(share.member_id == member_id for share in shares):
        return [
            share.model_copy(update={
                "share": percent,
                "amount": share_amount(percent, total),
            })
            if share.member_id == member_id else share
            for share in shares
        ]

    member = team.find_member(member_id)
    if member is None:
        return list(shares)

    return [*shares, ExpenseShare(
        member_id=member_id,
        member_name=member.name,
        share=percent,
        amount=share_amount(percent, total),
    )]
