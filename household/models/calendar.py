"""Calendar event model."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CalendarEvent(BaseModel):
    """An event on the team's shared calendar."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    date: datetime
    time: str = Field(
        default="00:00",
        pattern=r"^\d{1,2}:\d{2}$",
        description="Start time as HH:MM"
    )
    attendees: list[str] = Field(default_factory=list)
    attendee_ids: list[str] = Field(default_factory=list)
    team_id: Optional[str] = None
    added_by_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def starts_at(self) -> datetime:
        """Event date combined with its start time."""
        hours, minutes = (int(part) for part in self.time.split(":"))
        return self.date.replace(hour=hours, minute=minutes, second=0, microsecond=0)
