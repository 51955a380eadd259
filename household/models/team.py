"""
Team and Membership Models

A Team is a household sharing grocery lists, expenses and a calendar.
Members carry a role that, together with the team's content management
policy, decides who may change what.

DESIGN DECISION: Stored documents use camelCase keys (ownerId,
contentManagement...). Models expose snake_case fields and accept
either spelling through an alias generator.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Role(str, Enum):
    """Role of a member within a team."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class ContentType(str, Enum):
    """
    Kinds of team content guarded by the content management policy.

    DESIGN DECISION: A closed set rather than free text. The permission
    predicate is only defined for these three.
    """
    EXPENSES = "expenses"
    GROCERY = "grocery"
    EVENTS = "events"


class ContentPolicy(str, Enum):
    """Who may manage a content type."""
    ADMIN = "admin"
    EVERYONE = "everyone"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


def default_content_management() -> dict[str, Any]:
    """Policy a freshly created team starts with: everything admin-only."""
    return {content_type.value: ContentPolicy.ADMIN.value for content_type in ContentType}


# =============================================================================
# MEMBERS
# =============================================================================

class Member(BaseModel):
    """A user's membership record within a specific team."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Member identifier, unique within the team"
    )
    name: str = Field(
        default="",
        description="Display name"
    )
    email: Optional[str] = None
    role: Role = Field(
        default=Role.MEMBER,
        description="Role within the team"
    )
    joined_at: Optional[datetime] = None

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# =============================================================================
# SETTINGS
# =============================================================================

class CurrencySettings(BaseModel):
    """Reporting currency of the team and the currencies it accepts."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    primary: str = Field(
        default="USD",
        description="Reporting currency all balances are expressed in"
    )
    supported: list[str] = Field(
        default_factory=lambda: ["USD"],
        description="Currencies expenses may be recorded in"
    )
    last_update: Optional[datetime] = None


class NotificationSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: bool = True
    push: bool = True


class TeamSettings(BaseModel):
    """
    Team-level settings.

    content_management maps a content type tag to a policy. Values are
    kept exactly as stored: an unknown policy must not fail loading, the
    permission predicate treats it as admin-only.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    currency: CurrencySettings = Field(default_factory=CurrencySettings)
    theme: Theme = Theme.SYSTEM
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    content_management: dict[str, Any] = Field(
        default_factory=default_content_management,
        description="Content type -> 'admin' | 'everyone'"
    )

    @field_validator('content_management', mode='before')
    @classmethod
    def tolerate_missing_policy_table(cls, v: Any) -> Any:
        """A missing or non-mapping table loads as empty (admin-only everywhere)."""
        if not isinstance(v, dict):
            return {}
        return {str(key): value for key, value in v.items()}

    def policy_for(self, content_type: Any) -> Any:
        """Raw stored policy for a content type, or None."""
        key = content_type.value if isinstance(content_type, Enum) else content_type
        return self.content_management.get(key)


# =============================================================================
# TEAM
# =============================================================================

class Team(BaseModel):
    """A household/group sharing grocery lists, expenses and a calendar."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Team identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Team name"
    )
    description: Optional[str] = None
    owner_id: str = Field(
        ...,
        description="Member id of the team owner"
    )
    members: list[Member] = Field(default_factory=list)
    settings: TeamSettings = Field(default_factory=TeamSettings)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('members', mode='before')
    @classmethod
    def tolerate_missing_members(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator('settings', mode='before')
    @classmethod
    def tolerate_missing_settings(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def primary_currency(self) -> str:
        return self.settings.currency.primary

    def find_member(self, member_id: Optional[str]) -> Optional[Member]:
        """Look up a member by id. Returns None for unknown ids."""
        if member_id is None:
            return None
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def member_name(self, member_id: str) -> Optional[str]:
        member = self.find_member(member_id)
        return member.name if member else None
