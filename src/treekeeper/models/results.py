"""Result shapes returned by the relationship graph service."""
from __future__ import annotations

from dataclasses import dataclass, field

from .person import Person
from .relationship import Relationship, RelationshipType


@dataclass
class FamilyMembers:
    """Immediate relatives of a person, grouped by relationship."""
    parents: list[Person] = field(default_factory=list)
    children: list[Person] = field(default_factory=list)
    spouses: list[Person] = field(default_factory=list)
    siblings: list[Person] = field(default_factory=list)


@dataclass
class AncestryPath:
    """Layered traversal result; layer 0 holds the starting person."""
    generations: list[list[Person]] = field(default_factory=list)

    @property
    def depth(self) -> int:
        return len(self.generations)

    def person_ids(self) -> list[list[str]]:
        return [[p.id for p in layer] for layer in self.generations]


@dataclass
class FamilyUnit:
    """A spouse pair (or single parent) and their shared children.

    ``generation_level`` is layout metadata filled in by the caller.
    """
    id: str
    spouse1: Person
    spouse2: Person | None = None
    children: list[Person] = field(default_factory=list)
    generation_level: int = 0

    @property
    def is_single_parent(self) -> bool:
        return self.spouse2 is None


@dataclass
class SpousePair:
    """Both directed halves of a spouse relationship."""
    relationship_a: Relationship
    relationship_b: Relationship


@dataclass
class BatchFailure:
    related_person_id: str
    relationship_type: RelationshipType
    error: str


@dataclass
class BatchCreateResult:
    """Outcome of a best-effort batch creation."""
    created: list[Relationship] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
