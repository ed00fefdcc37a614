"""Person model - a member of exactly one family tree."""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .ids import new_id


class Gender(str, Enum):
    """Recorded gender of a person."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"


class Person(BaseModel):
    """A person owned by a tree.

    Persons are created and deleted only through tree-scoped operations;
    the graph services read them but never write them.
    """

    id: str = Field(default_factory=new_id)
    tree_id: str
    first_name: str
    last_name: str = ""
    gender: Gender = Gender.UNKNOWN
    birth_date: date | None = None
    death_date: date | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_living(self) -> bool:
        return self.death_date is None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
