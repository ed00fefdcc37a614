"""Traversal algorithms over the relationship graph.

Provides:
- Ancestor closure (who is reachable by walking parent edges upward)
- Layered breadth-first walks for ancestors and descendants
- Family unit grouping (spouse pairs or single parents plus children)

All walks are iterative with explicit visited sets, so even a graph that
somehow contains a cycle terminates.
"""
from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from treekeeper.models import (
    AncestryPath,
    FamilyUnit,
    Person,
    Relationship,
    RelationshipType,
)

if TYPE_CHECKING:
    from treekeeper.repositories import PersonRepository, RelationshipRepository

Expander = Callable[[str], Awaitable[list[str]]]


async def ancestor_closure(relationships: RelationshipRepository, person_id: str) -> set[str]:
    """Return ``person_id`` together with every ancestor reachable from it."""
    visited: set[str] = set()
    work: deque[str] = deque([person_id])
    while work:
        current = work.popleft()
        if current in visited:
            continue
        visited.add(current)
        for edge in await relationships.find_parents(current):
            if edge.from_person_id not in visited:
                work.append(edge.from_person_id)
    return visited


def parents_of(relationships: RelationshipRepository) -> Expander:
    async def expand(person_id: str) -> list[str]:
        return [edge.from_person_id for edge in await relationships.find_parents(person_id)]
    return expand


def children_of(relationships: RelationshipRepository) -> Expander:
    async def expand(person_id: str) -> list[str]:
        return [edge.to_person_id for edge in await relationships.find_children(person_id)]
    return expand


async def layered_walk(
    start: Person,
    expand: Expander,
    persons: PersonRepository,
    generations: int,
) -> AncestryPath:
    """Breadth-first walk one hop per layer.

    Layer 0 is ``[start]``. Each following layer holds the relatives first
    discovered at that distance, deduplicated and in discovery order. The
    walk stops after ``generations`` hops or at the first empty layer.
    Neighbours of a layer are fetched concurrently; the result does not
    depend on completion order.
    """
    layers: list[list[Person]] = [[start]]
    visited: set[str] = {start.id}

    for _ in range(max(generations, 0)):
        current = layers[-1]
        neighbour_lists = await asyncio.gather(*(expand(p.id) for p in current))

        discovered: list[str] = []
        for neighbours in neighbour_lists:
            for person_id in neighbours:
                if person_id not in visited:
                    visited.add(person_id)
                    discovered.append(person_id)
        if not discovered:
            break

        found = await persons.find_by_ids(discovered)
        if not found:
            break
        layers.append(found)

    return AncestryPath(generations=layers)


def pair_key(person_a_id: str, person_b_id: str) -> str:
    """Order-independent key for a spouse pair."""
    return "-".join(sorted((person_a_id, person_b_id)))


def build_family_units(persons: list[Person], relationships: list[Relationship]) -> list[FamilyUnit]:
    """Group a tree into nuclear family units.

    Spouse pairs come first, one unit per unique pair, in edge order. A
    pair unit is emitted even without children. Persons with no spouse
    edge at all but with children then get a ``single-<id>`` unit.
    """
    person_map = {p.id: p for p in persons}
    spouse_edges = [r for r in relationships if r.type == RelationshipType.SPOUSE]

    parents_by_child: dict[str, set[str]] = {}
    children_by_parent: dict[str, list[str]] = {}
    for edge in relationships:
        if edge.is_parent_type:
            parents_by_child.setdefault(edge.to_person_id, set()).add(edge.from_person_id)
            children_by_parent.setdefault(edge.from_person_id, []).append(edge.to_person_id)

    units: list[FamilyUnit] = []
    processed: set[str] = set()

    for edge in spouse_edges:
        key = pair_key(edge.from_person_id, edge.to_person_id)
        if key in processed:
            continue
        processed.add(key)

        spouse1 = person_map.get(edge.from_person_id)
        spouse2 = person_map.get(edge.to_person_id)
        if spouse1 is None:
            continue

        required = {spouse1.id} if spouse2 is None else {spouse1.id, spouse2.id}
        children = [
            person
            for person in persons
            if required <= parents_by_child.get(person.id, set())
        ]
        units.append(FamilyUnit(id=key, spouse1=spouse1, spouse2=spouse2, children=children))

    married: set[str] = set()
    for edge in spouse_edges:
        married.add(edge.from_person_id)
        married.add(edge.to_person_id)

    for person in persons:
        if person.id in married:
            continue
        children = [
            person_map[child_id]
            for child_id in children_by_parent.get(person.id, [])
            if child_id in person_map
        ]
        if children:
            units.append(FamilyUnit(id=f"single-{person.id}", spouse1=person, children=children))

    return units
