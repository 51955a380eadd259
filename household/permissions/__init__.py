"""Permission checks package."""

from household.permissions.content import (
    can_change_member_role,
    can_manage_content,
    can_manage_team_settings,
    can_remove_member,
)

__all__ = [
    "can_change_member_role",
    "can_manage_content",
    "can_manage_team_settings",
    "can_remove_member",
]
