"""Repository interfaces the core services depend on.

Persistence is an injected collaborator: the services only ever call
the point lookups and writes declared here.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from treekeeper.models import (
    AuditEntry,
    Person,
    Relationship,
    RelationshipType,
    Tree,
)


class PersonRepository(ABC):
    """Read access to persons, plus the cascade used by tree deletion."""

    @abstractmethod
    async def find_by_id(self, person_id: str) -> Person | None:
        ...

    @abstractmethod
    async def find_by_ids(self, person_ids: Iterable[str]) -> list[Person]:
        """Bulk fetch; missing ids are skipped and input order is kept."""
        ...

    @abstractmethod
    async def find_by_tree_id(self, tree_id: str) -> list[Person]:
        ...

    @abstractmethod
    async def delete_by_tree_id(self, tree_id: str) -> int:
        ...


class TreeRepository(ABC):

    @abstractmethod
    async def find_by_id(self, tree_id: str) -> Tree | None:
        """Get a tree with its owner, collaborators and settings."""
        ...


class RelationshipRepository(ABC):
    """Storage of directed relationship edges."""

    @abstractmethod
    async def find_by_id(self, relationship_id: str) -> Relationship | None:
        ...

    @abstractmethod
    async def find_by_tree_id(self, tree_id: str) -> list[Relationship]:
        ...

    @abstractmethod
    async def find_by_person_id(self, person_id: str) -> list[Relationship]:
        """Edges touching the person in either direction."""
        ...

    @abstractmethod
    async def find_by_person_id_and_type(
        self, person_id: str, relationship_type: RelationshipType
    ) -> list[Relationship]:
        """Edges of one type touching the person in either direction."""
        ...

    @abstractmethod
    async def find_between_persons(
        self, person_a_id: str, person_b_id: str
    ) -> Relationship | None:
        """First edge joining the two persons, regardless of direction."""
        ...

    @abstractmethod
    async def find_parents(self, person_id: str) -> list[Relationship]:
        """Incoming parent-type edges (the person is the child)."""
        ...

    @abstractmethod
    async def find_children(self, person_id: str) -> list[Relationship]:
        """Outgoing parent-type edges (the person is the parent)."""
        ...

    @abstractmethod
    async def find_spouses(self, person_id: str) -> list[Relationship]:
        """Outgoing spouse edges."""
        ...

    @abstractmethod
    async def find_siblings(self, person_id: str) -> list[Relationship]:
        """Sibling edges in either direction."""
        ...

    @abstractmethod
    async def create(self, relationship: Relationship) -> Relationship:
        ...

    @abstractmethod
    async def update(self, relationship_id: str, changes: dict[str, object]) -> Relationship:
        ...

    @abstractmethod
    async def delete(self, relationship_id: str) -> bool:
        ...

    @abstractmethod
    async def delete_by_tree_id(self, tree_id: str) -> int:
        ...


class AuditRepository(ABC):

    @abstractmethod
    async def create(self, entry: AuditEntry) -> AuditEntry:
        """Append an audit entry. Entries are never updated or deleted."""
        ...
