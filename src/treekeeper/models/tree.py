"""Tree model - ownership, collaborators and visibility."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .ids import new_id


class Role(str, Enum):
    """Permission level a user holds on a tree."""

    VIEWER = "viewer"
    EDITOR = "editor"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        """Ordinal used for minimum-role checks (viewer < editor < owner)."""
        return _ROLE_RANK[self]


_ROLE_RANK = {Role.VIEWER: 0, Role.EDITOR: 1, Role.OWNER: 2}


class Collaborator(BaseModel):
    """A non-owner user granted access to a tree."""

    user_id: str
    permission: Role = Role.VIEWER


class TreeSettings(BaseModel):
    is_public: bool = False


class Tree(BaseModel):
    """A family tree.

    The owner is implicit: it is not listed among collaborators and
    always holds every right on the tree.
    """

    id: str = Field(default_factory=new_id)
    owner_id: str
    name: str = ""
    collaborators: list[Collaborator] = Field(default_factory=list)
    settings: TreeSettings = Field(default_factory=TreeSettings)

    @model_validator(mode="after")
    def _distinct_collaborators(self) -> Tree:
        seen: set[str] = set()
        for collaborator in self.collaborators:
            if collaborator.user_id in seen:
                raise ValueError(f"duplicate collaborator: {collaborator.user_id}")
            seen.add(collaborator.user_id)
        return self

    def find_collaborator(self, user_id: str) -> Collaborator | None:
        for collaborator in self.collaborators:
            if collaborator.user_id == user_id:
                return collaborator
        return None
