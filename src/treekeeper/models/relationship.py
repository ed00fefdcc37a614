"""Relationship edges of the family graph and their input DTOs."""
from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from .ids import new_id
from .person import Gender


class RelationshipType(str, Enum):
    """Edge types of the family graph.

    FATHER and MOTHER refine PARENT and share its structural rules.
    """

    PARENT = "parent"
    FATHER = "father"
    MOTHER = "mother"
    SPOUSE = "spouse"
    SIBLING = "sibling"

    @property
    def is_parent_type(self) -> bool:
        return self in PARENT_RELATIONSHIP_TYPES


PARENT_RELATIONSHIP_TYPES = frozenset(
    {RelationshipType.PARENT, RelationshipType.FATHER, RelationshipType.MOTHER}
)


def parent_type_for_gender(gender: Gender | str | None) -> RelationshipType:
    """Map a parent's gender to the edge type that describes them."""
    if gender == Gender.MALE:
        return RelationshipType.FATHER
    if gender == Gender.FEMALE:
        return RelationshipType.MOTHER
    return RelationshipType.PARENT


def _strip_notes(value: str | None) -> str | None:
    return value.strip() if value is not None else None


Notes = Annotated[str | None, AfterValidator(_strip_notes)]


class Relationship(BaseModel):
    """A directed edge between two persons of the same tree.

    For parent types ``from_person_id`` is the parent and ``to_person_id``
    the child. A spouse relationship is stored as two mirrored edges.
    """

    id: str = Field(default_factory=new_id)
    tree_id: str
    from_person_id: str
    to_person_id: str
    type: RelationshipType
    start_date: date | None = None
    end_date: date | None = None
    notes: Notes = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_parent_type(self) -> bool:
        return self.type.is_parent_type

    @property
    def is_active(self) -> bool:
        """An edge without an end date is ongoing."""
        return self.end_date is None

    def other_person_id(self, person_id: str) -> str:
        """Return the endpoint opposite to ``person_id``."""
        if person_id == self.from_person_id:
            return self.to_person_id
        return self.from_person_id


class RelationshipDetails(BaseModel):
    """Optional dates and notes, shared by both halves of a spouse pair."""

    start_date: date | None = None
    end_date: date | None = None
    notes: Notes = None


class RelationshipCreate(RelationshipDetails):
    """Request to connect two persons."""

    from_person_id: str
    to_person_id: str
    type: RelationshipType

    @property
    def details(self) -> RelationshipDetails:
        return RelationshipDetails(
            start_date=self.start_date, end_date=self.end_date, notes=self.notes
        )


class RelationshipUpdate(BaseModel):
    """Partial update of an existing relationship.

    Only fields explicitly set are applied, so passing ``end_date=None``
    reopens an ended relationship.
    """

    type: RelationshipType | None = None
    start_date: date | None = None
    end_date: date | None = None
    notes: Notes = None

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)


class RelatedPersonSpec(BaseModel):
    """One item of a batch relationship creation."""

    related_person_id: str
    relationship_type: RelationshipType
