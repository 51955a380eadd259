"""Grocery list models."""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class GroceryItem(BaseModel):
    """One line on a grocery list."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(default=1, gt=0)
    unit: str = "unit"
    completed: bool = False
    notes: Optional[str] = None
    added_by: str = Field(
        default="",
        description="Display name of the member who added the item"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('quantity', mode='before')
    @classmethod
    def default_quantity(cls, v: Any) -> Any:
        """Blank or zero quantities count as one."""
        if v in (None, "", 0):
            return 1
        return v


class GroceryList(BaseModel):
    """A named list of grocery items belonging to one team."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(default="Untitled List", max_length=100)
    items: list[GroceryItem] = Field(default_factory=list)
    team_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('items', mode='before')
    @classmethod
    def tolerate_missing_items(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    def find_item(self, item_id: str) -> Optional[GroceryItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    @property
    def open_count(self) -> int:
        return sum(1 for item in self.items if not item.completed)
