"""
Permission Checks

Every create/update/delete of grocery items, expenses and calendar events
is gated by can_manage_content. Member administration (removing members,
changing roles) has its own, fixed rules.

All checks are pure: they read only their arguments and never raise.
Anything the team settings don't spell out falls back to admin-only.
"""

from typing import Optional, Union

from household.models.team import ContentPolicy, ContentType, Member, Role, Team


def can_manage_content(
    team: Team,
    member: Member,
    content_type: Union[ContentType, str],
    content_creator_id: Optional[str] = None,
) -> bool:
    """
    Decide whether a member may create, edit or delete a piece of content.

    Order of checks:
    1. Owners may manage everything
    2. Anyone may manage content they created
    3. Otherwise the team policy for the content type applies:
       "everyone" lets any member through, "admin" (or anything
       unrecognised, or no policy at all) only admins.
    """
    if member is None:
        return False

    if member.role == Role.OWNER:
        return True

    if content_creator_id and content_creator_id == member.id:
        return True

    policy = team.settings.policy_for(content_type) if team is not None else None

    if policy == ContentPolicy.EVERYONE.value:
        return True

    if policy == ContentPolicy.ADMIN.value:
        return member.role == Role.ADMIN

    # No policy, or one we don't know: admin-only
    return member.role == Role.ADMIN


def can_remove_member(actor: Member, target: Member) -> bool:
    """Owners and admins may remove members. The owner can never be removed."""
    if actor.role not in (Role.OWNER, Role.ADMIN):
        return False
    return target.role != Role.OWNER


def can_change_member_role(actor: Member, target: Member) -> bool:
    """Only the owner changes roles, and the owner's own role is fixed."""
    if actor.role != Role.OWNER:
        return False
    return target.role != Role.OWNER


def can_manage_team_settings(team: Team, member: Member) -> bool:
    """
    Who may open the team settings (name, currency, content policies).

    The owner always may. Anyone else follows the expenses policy, as if
    every expense had been recorded by the owner.
    """
    if member is None or team is None:
        return False
    if member.role == Role.OWNER:
        return True
    return can_manage_content(team, member, ContentType.EXPENSES, team.owner_id)
