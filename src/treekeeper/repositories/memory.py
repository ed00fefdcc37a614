"""Dict-backed repositories for development and testing.

Each repository keeps its entities in insertion order so lookups are
deterministic. Records are copied on the way in and out, so callers can
never mutate stored state behind the repository's back.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from treekeeper.models import (
    AuditEntry,
    Person,
    Relationship,
    RelationshipType,
    Tree,
)

from .base import AuditRepository, PersonRepository, RelationshipRepository, TreeRepository


class InMemoryPersonRepository(PersonRepository):

    def __init__(self, persons: Iterable[Person] = ()) -> None:
        self._persons: dict[str, Person] = {}
        for person in persons:
            self.add(person)

    def add(self, person: Person) -> Person:
        self._persons[person.id] = person.model_copy(deep=True)
        return person

    async def find_by_id(self, person_id: str) -> Person | None:
        person = self._persons.get(person_id)
        return person.model_copy(deep=True) if person else None

    async def find_by_ids(self, person_ids: Iterable[str]) -> list[Person]:
        return [
            self._persons[pid].model_copy(deep=True)
            for pid in person_ids
            if pid in self._persons
        ]

    async def find_by_tree_id(self, tree_id: str) -> list[Person]:
        return [p.model_copy(deep=True) for p in self._persons.values() if p.tree_id == tree_id]

    async def delete_by_tree_id(self, tree_id: str) -> int:
        doomed = [pid for pid, p in self._persons.items() if p.tree_id == tree_id]
        for pid in doomed:
            del self._persons[pid]
        return len(doomed)


class InMemoryTreeRepository(TreeRepository):

    def __init__(self, trees: Iterable[Tree] = ()) -> None:
        self._trees: dict[str, Tree] = {}
        for tree in trees:
            self.add(tree)

    def add(self, tree: Tree) -> Tree:
        self._trees[tree.id] = tree.model_copy(deep=True)
        return tree

    async def find_by_id(self, tree_id: str) -> Tree | None:
        tree = self._trees.get(tree_id)
        return tree.model_copy(deep=True) if tree else None


class InMemoryRelationshipRepository(RelationshipRepository):

    def __init__(self, relationships: Iterable[Relationship] = ()) -> None:
        self._edges: dict[str, Relationship] = {}
        for relationship in relationships:
            self._edges[relationship.id] = relationship.model_copy(deep=True)

    def _select(self, predicate) -> list[Relationship]:
        return [r.model_copy(deep=True) for r in self._edges.values() if predicate(r)]

    async def find_by_id(self, relationship_id: str) -> Relationship | None:
        edge = self._edges.get(relationship_id)
        return edge.model_copy(deep=True) if edge else None

    async def find_by_tree_id(self, tree_id: str) -> list[Relationship]:
        return self._select(lambda r: r.tree_id == tree_id)

    async def find_by_person_id(self, person_id: str) -> list[Relationship]:
        return self._select(lambda r: person_id in (r.from_person_id, r.to_person_id))

    async def find_by_person_id_and_type(
        self, person_id: str, relationship_type: RelationshipType
    ) -> list[Relationship]:
        return self._select(
            lambda r: r.type == relationship_type
            and person_id in (r.from_person_id, r.to_person_id)
        )

    async def find_between_persons(
        self, person_a_id: str, person_b_id: str
    ) -> Relationship | None:
        for edge in self._edges.values():
            if (edge.from_person_id, edge.to_person_id) in (
                (person_a_id, person_b_id),
                (person_b_id, person_a_id),
            ):
                return edge.model_copy(deep=True)
        return None

    async def find_parents(self, person_id: str) -> list[Relationship]:
        return self._select(lambda r: r.is_parent_type and r.to_person_id == person_id)

    async def find_children(self, person_id: str) -> list[Relationship]:
        return self._select(lambda r: r.is_parent_type and r.from_person_id == person_id)

    async def find_spouses(self, person_id: str) -> list[Relationship]:
        return self._select(
            lambda r: r.type == RelationshipType.SPOUSE and r.from_person_id == person_id
        )

    async def find_siblings(self, person_id: str) -> list[Relationship]:
        return self._select(
            lambda r: r.type == RelationshipType.SIBLING
            and person_id in (r.from_person_id, r.to_person_id)
        )

    async def create(self, relationship: Relationship) -> Relationship:
        if relationship.id in self._edges:
            raise KeyError(f"Relationship {relationship.id} already exists")
        self._edges[relationship.id] = relationship.model_copy(deep=True)
        return relationship.model_copy(deep=True)

    async def update(self, relationship_id: str, changes: dict[str, object]) -> Relationship:
        edge = self._edges.get(relationship_id)
        if edge is None:
            raise KeyError(f"Relationship {relationship_id} not found")
        updated = edge.model_copy(update={**changes, "updated_at": datetime.now(UTC)})
        self._edges[relationship_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, relationship_id: str) -> bool:
        return self._edges.pop(relationship_id, None) is not None

    async def delete_by_tree_id(self, tree_id: str) -> int:
        doomed = [rid for rid, r in self._edges.items() if r.tree_id == tree_id]
        for rid in doomed:
            del self._edges[rid]
        return len(doomed)


class InMemoryAuditRepository(AuditRepository):

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    async def create(self, entry: AuditEntry) -> AuditEntry:
        self.entries.append(entry)
        return entry
