"""Relationship graph service.

Every mutation of the family graph goes through this service. It asks the
permission service first, then enforces the structural invariants:
- a person has at most two parents
- parent edges never form a cycle
- spouse edges exist in both directions and at most one pair is active
- two persons are joined by at most one edge (a spouse mirror aside)
- father/mother typing follows the parent's gender

Checks run in a fixed order (permission, existence, tree membership,
type-specific validation, cycle, duplicate) and the first failure is
raised on its own.

Example:
    >>> graph = RelationshipGraphService(relationships, persons, permissions, audit)
    >>> edge = await graph.create_parent_relationship(tree_id, user_id, mother_id, child_id)
    >>> edge.type
    <RelationshipType.MOTHER: 'mother'>
"""
from __future__ import annotations

import asyncio
import locale
from typing import TYPE_CHECKING

from treekeeper.audit import AuditRecorder
from treekeeper.config import CONFIG, TreeKeeperConfig
from treekeeper.errors import (
    BusinessRuleError,
    NotFoundError,
    PermissionError,
    TreeServiceError,
    ValidationError,
)
from treekeeper.logging import get_logger
from treekeeper.models import (
    AncestryPath,
    AuditAction,
    BatchCreateResult,
    BatchFailure,
    FamilyMembers,
    FamilyUnit,
    Gender,
    Person,
    RelatedPersonSpec,
    Relationship,
    RelationshipCreate,
    RelationshipDetails,
    RelationshipType,
    RelationshipUpdate,
    SpousePair,
    parent_type_for_gender,
)
from treekeeper.permissions import Action

from .traversal import (
    ancestor_closure,
    build_family_units,
    children_of,
    layered_walk,
    parents_of,
)

if TYPE_CHECKING:
    from datetime import date

    from treekeeper.permissions import PermissionService
    from treekeeper.repositories import (
        AuditRepository,
        PersonRepository,
        RelationshipRepository,
    )

logger = get_logger(__name__)

SELF_RELATIONSHIP = "Cannot create relationship with same person"
DATES_OUT_OF_ORDER = "End date cannot be before start date"
SAME_TREE = "Persons must belong to the same tree"
DUPLICATE_EDGE = "A relationship between these persons already exists"
CYCLE = "This relationship would create an impossible cycle"


class RelationshipGraphService:
    """Invariant-preserving mutations and traversals of a family graph."""

    def __init__(
        self,
        relationship_repository: RelationshipRepository,
        person_repository: PersonRepository,
        permission_service: PermissionService,
        audit_repository: AuditRepository,
        config: TreeKeeperConfig | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            relationship_repository: Edge storage
            person_repository: Person lookups (read-only)
            permission_service: Authorization for every operation
            audit_repository: Sink for mutation records
            config: Graph limits (defaults to the environment config)
        """
        self.relationships = relationship_repository
        self.persons = person_repository
        self.permissions = permission_service
        self.audit = AuditRecorder(audit_repository)
        self.config = config or CONFIG

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_relationship(
        self, tree_id: str, user_id: str, data: RelationshipCreate
    ) -> Relationship:
        """Create a relationship, routing spouse and parent types to their constructors.

        For a spouse the returned edge is the ``from -> to`` half of the pair.
        """
        await self._require(user_id, tree_id, Action.ADD_RELATIONSHIP)

        from_person, to_person = await self._load_pair(data.from_person_id, data.to_person_id)
        self._require_same_tree(tree_id, from_person, to_person)
        self._require_structurally_valid(from_person.id, to_person.id, data.start_date, data.end_date)

        if data.type == RelationshipType.SPOUSE:
            await self._require_spouse_available(from_person, to_person, data.end_date)
        if data.type.is_parent_type:
            self._require_gender_consistent(from_person, data.type)
            await self._require_parent_slot(to_person.id)
            if await self.check_for_cycles(from_person.id, to_person.id, data.type):
                raise BusinessRuleError(CYCLE)

        await self._require_unconnected(from_person.id, to_person.id)

        if data.type == RelationshipType.SPOUSE:
            pair = await self.create_spouse_relationship(
                tree_id, user_id, from_person.id, to_person.id, data.details
            )
            return pair.relationship_a
        if data.type == RelationshipType.PARENT:
            return await self.create_parent_relationship(
                tree_id, user_id, from_person.id, to_person.id, data.details
            )
        if data.type.is_parent_type:
            return await self._create_typed_parent(
                tree_id, user_id, from_person.id, to_person.id, data.type, data.details
            )

        relationship = await self.relationships.create(
            Relationship(
                tree_id=tree_id,
                from_person_id=from_person.id,
                to_person_id=to_person.id,
                type=data.type,
                start_date=data.start_date,
                end_date=data.end_date,
                notes=data.notes,
            )
        )
        await self.audit.record(
            tree_id=tree_id, user_id=user_id, action=AuditAction.CREATE, entity_id=relationship.id
        )
        logger.info(
            "relationship.created",
            tree_id=tree_id,
            relationship_id=relationship.id,
            type=relationship.type.value,
        )
        return relationship

    async def create_spouse_relationship(
        self,
        tree_id: str,
        user_id: str,
        person_a_id: str,
        person_b_id: str,
        data: RelationshipDetails | None = None,
    ) -> SpousePair:
        """Create both directed halves of a spouse relationship.

        The mirror (B -> A) is written first and rolled back if the primary
        (A -> B) write fails. A crash between the two writes leaves a lone
        spouse edge that ``repair_spouse_symmetry`` restores.

        A person with an active spouse cannot gain another one unless the
        new relationship has already ended.
        """
        data = data or RelationshipDetails()
        await self._require(user_id, tree_id, Action.ADD_RELATIONSHIP)

        person_a, person_b = await self._load_pair(person_a_id, person_b_id)
        self._require_same_tree(tree_id, person_a, person_b)
        self._require_structurally_valid(person_a.id, person_b.id, data.start_date, data.end_date)
        await self._require_spouse_available(person_a, person_b, data.end_date)
        await self._require_unconnected(person_a.id, person_b.id)

        def half(from_id: str, to_id: str) -> Relationship:
            return Relationship(
                tree_id=tree_id,
                from_person_id=from_id,
                to_person_id=to_id,
                type=RelationshipType.SPOUSE,
                start_date=data.start_date,
                end_date=data.end_date,
                notes=data.notes,
            )

        mirror = await self.relationships.create(half(person_b.id, person_a.id))
        try:
            primary = await self.relationships.create(half(person_a.id, person_b.id))
        except Exception:
            await self._rollback_mirror(mirror)
            raise

        await self.audit.record(
            tree_id=tree_id,
            user_id=user_id,
            action=AuditAction.CREATE,
            entity_id=primary.id,
            changes=[("bidirectional", None, mirror.id)],
        )
        logger.info(
            "relationship.spouse_created",
            tree_id=tree_id,
            relationship_id=primary.id,
            mirror_id=mirror.id,
        )
        return SpousePair(relationship_a=primary, relationship_b=mirror)

    async def create_parent_relationship(
        self,
        tree_id: str,
        user_id: str,
        parent_id: str,
        child_id: str,
        data: RelationshipDetails | None = None,
    ) -> Relationship:
        """Create a parent edge typed father, mother or parent from the parent's gender."""
        await self._require(user_id, tree_id, Action.ADD_RELATIONSHIP)
        parent = await self.persons.find_by_id(parent_id)
        if parent is None:
            raise NotFoundError("Person", parent_id)
        relationship_type = parent_type_for_gender(parent.gender)
        return await self._create_typed_parent(
            tree_id, user_id, parent_id, child_id, relationship_type, data
        )

    async def _create_typed_parent(
        self,
        tree_id: str,
        user_id: str,
        parent_id: str,
        child_id: str,
        relationship_type: RelationshipType,
        data: RelationshipDetails | None = None,
    ) -> Relationship:
        data = data or RelationshipDetails()
        await self._require(user_id, tree_id, Action.ADD_RELATIONSHIP)

        parent, child = await self._load_pair(parent_id, child_id)
        self._require_same_tree(tree_id, parent, child)
        self._require_structurally_valid(parent.id, child.id, data.start_date, data.end_date)
        self._require_gender_consistent(parent, relationship_type)
        await self._require_parent_slot(child.id)
        if await self.check_for_cycles(parent.id, child.id, relationship_type):
            raise BusinessRuleError(CYCLE)
        await self._require_unconnected(parent.id, child.id)

        relationship = await self.relationships.create(
            Relationship(
                tree_id=tree_id,
                from_person_id=parent.id,
                to_person_id=child.id,
                type=relationship_type,
                start_date=data.start_date,
                end_date=data.end_date,
                notes=data.notes,
            )
        )
        await self.audit.record(
            tree_id=tree_id, user_id=user_id, action=AuditAction.CREATE, entity_id=relationship.id
        )
        logger.info(
            "relationship.parent_created",
            tree_id=tree_id,
            relationship_id=relationship.id,
            type=relationship_type.value,
        )
        return relationship

    async def create_relationships_for_person(
        self,
        tree_id: str,
        user_id: str,
        person_id: str,
        relationships: list[RelatedPersonSpec],
    ) -> BatchCreateResult:
        """Connect several persons to one person, best effort.

        Each item creates ``related -> person``. A failing item is recorded
        and logged without stopping the others; edges already created stay.
        """
        await self._require(user_id, tree_id, Action.ADD_RELATIONSHIP)
        person = await self.persons.find_by_id(person_id)
        if person is None or person.tree_id != tree_id:
            raise NotFoundError("Person", person_id)

        result = BatchCreateResult()
        for item in relationships:
            try:
                created = await self.create_relationship(
                    tree_id,
                    user_id,
                    RelationshipCreate(
                        from_person_id=item.related_person_id,
                        to_person_id=person_id,
                        type=item.relationship_type,
                    ),
                )
            except TreeServiceError as exc:
                result.failures.append(
                    BatchFailure(
                        related_person_id=item.related_person_id,
                        relationship_type=item.relationship_type,
                        error=str(exc),
                    )
                )
                continue
            result.created.append(created)

        if result.failures:
            logger.warning(
                "relationship.batch_partial_failure",
                tree_id=tree_id,
                person_id=person_id,
                created=len(result.created),
                failed=[f"{f.related_person_id}: {f.error}" for f in result.failures],
            )
        return result

    # ------------------------------------------------------------------
    # Update and delete
    # ------------------------------------------------------------------

    async def update_relationship(
        self, relationship_id: str, user_id: str, data: RelationshipUpdate
    ) -> Relationship:
        """Update dates, notes or parent typing of an edge.

        A parent edge can only be retyped to the type its parent's gender
        calls for. Spouse updates are copied to the mirror edge so both
        halves keep matching dates and notes.
        """
        existing = await self._load_relationship(relationship_id)
        await self._require(user_id, existing.tree_id, Action.ADD_RELATIONSHIP)

        changes = data.changes()
        if changes.get("type", existing.type) is None:
            del changes["type"]
        if not changes:
            return existing

        new_type = changes.get("type", existing.type)
        if new_type != existing.type:
            if not (existing.is_parent_type and new_type.is_parent_type):
                raise ValidationError(["Relationship type can only change between parent types"])
        start = changes.get("start_date", existing.start_date)
        end = changes.get("end_date", existing.end_date)
        if start and end and end < start:
            raise ValidationError([DATES_OUT_OF_ORDER])

        if new_type != existing.type:
            parent = await self.persons.find_by_id(existing.from_person_id)
            if parent is None:
                raise NotFoundError("Person", existing.from_person_id)
            # Retyping may only bring the edge in line with the parent's gender
            expected = parent_type_for_gender(parent.gender)
            if new_type != expected:
                raise BusinessRuleError(
                    f"{parent.first_name} must be recorded as {expected.value}, not {new_type.value}"
                )

        mirror = None
        if existing.type == RelationshipType.SPOUSE:
            mirror = await self._find_mirror(existing)
            if end is None and existing.end_date is not None:
                await self._require_reopenable(existing)

        updated = await self.relationships.update(existing.id, changes)
        if mirror is not None:
            await self.relationships.update(mirror.id, changes)

        await self.audit.record(
            tree_id=existing.tree_id,
            user_id=user_id,
            action=AuditAction.UPDATE,
            entity_id=existing.id,
            changes=[(name, getattr(existing, name), value) for name, value in changes.items()],
        )
        logger.info(
            "relationship.updated",
            relationship_id=existing.id,
            fields=sorted(changes),
            mirrored=mirror is not None,
        )
        return updated

    async def delete_relationship(self, relationship_id: str, user_id: str) -> None:
        """Delete an edge; spouse edges take their mirror with them."""
        existing = await self._load_relationship(relationship_id)
        if existing.type == RelationshipType.SPOUSE:
            await self.delete_bidirectional_relationship(relationship_id, user_id)
            return

        await self._require(user_id, existing.tree_id, Action.ADD_RELATIONSHIP)
        await self.relationships.delete(existing.id)
        await self.audit.record(
            tree_id=existing.tree_id,
            user_id=user_id,
            action=AuditAction.DELETE,
            entity_id=existing.id,
        )
        logger.info("relationship.deleted", relationship_id=existing.id)

    async def delete_bidirectional_relationship(self, relationship_id: str, user_id: str) -> None:
        """Delete an edge and its mirror.

        A missing mirror is not an error. If the mirror delete fails after
        the primary is gone, the orphan is logged for the repair pass and
        the error propagates.
        """
        existing = await self._load_relationship(relationship_id)
        await self._require(user_id, existing.tree_id, Action.ADD_RELATIONSHIP)

        await self.relationships.delete(existing.id)
        mirror = None
        try:
            mirror = await self.relationships.find_between_persons(
                existing.to_person_id, existing.from_person_id
            )
            if mirror is not None and mirror.type == existing.type:
                await self.relationships.delete(mirror.id)
            else:
                mirror = None
        except Exception:
            logger.error(
                "relationship.mirror_orphaned",
                tree_id=existing.tree_id,
                relationship_id=existing.id,
                from_person_id=existing.to_person_id,
                to_person_id=existing.from_person_id,
            )
            raise

        await self.audit.record(
            tree_id=existing.tree_id,
            user_id=user_id,
            action=AuditAction.DELETE,
            entity_id=existing.id,
            changes=[("bidirectional", mirror.id if mirror else None, None)],
        )
        logger.info(
            "relationship.bidirectional_deleted",
            relationship_id=existing.id,
            mirror_id=mirror.id if mirror else None,
        )

    async def update_parent_relationships_on_gender_change(
        self, person_id: str, new_gender: Gender | str, user_id: str
    ) -> list[Relationship]:
        """Retype the person's outgoing parent edges to match a new gender.

        Returns the edges that changed; each change is audited on its own.
        """
        person = await self.persons.find_by_id(person_id)
        if person is None:
            raise NotFoundError("Person", person_id)
        await self._require(user_id, person.tree_id, Action.ADD_RELATIONSHIP)

        try:
            gender = Gender(new_gender)
        except ValueError:
            raise ValidationError([f"Unknown gender: {new_gender}"]) from None
        new_type = parent_type_for_gender(gender)
        retyped: list[Relationship] = []
        for edge in await self.relationships.find_children(person_id):
            if edge.type == new_type:
                continue
            updated = await self.relationships.update(edge.id, {"type": new_type})
            await self.audit.record(
                tree_id=person.tree_id,
                user_id=user_id,
                action=AuditAction.UPDATE,
                entity_id=edge.id,
                changes=[("type", edge.type.value, new_type.value)],
            )
            retyped.append(updated)

        if retyped:
            logger.info(
                "relationship.retyped_on_gender_change",
                person_id=person_id,
                new_type=new_type.value,
                count=len(retyped),
            )
        return retyped

    async def repair_spouse_symmetry(self, tree_id: str, user_id: str) -> list[Relationship]:
        """Recreate missing mirror halves of spouse edges in a tree.

        This is the reconciliation pass for a bidirectional write that was
        interrupted between its two halves.
        """
        await self._require(user_id, tree_id, Action.ADD_RELATIONSHIP)
        edges = await self.relationships.find_by_tree_id(tree_id)
        spouse_edges = [e for e in edges if e.type == RelationshipType.SPOUSE]
        directed = {(e.from_person_id, e.to_person_id) for e in spouse_edges}

        repaired: list[Relationship] = []
        for edge in spouse_edges:
            if (edge.to_person_id, edge.from_person_id) in directed:
                continue
            mirror = await self.relationships.create(
                Relationship(
                    tree_id=tree_id,
                    from_person_id=edge.to_person_id,
                    to_person_id=edge.from_person_id,
                    type=RelationshipType.SPOUSE,
                    start_date=edge.start_date,
                    end_date=edge.end_date,
                    notes=edge.notes,
                )
            )
            directed.add((mirror.from_person_id, mirror.to_person_id))
            await self.audit.record(
                tree_id=tree_id,
                user_id=user_id,
                action=AuditAction.CREATE,
                entity_id=mirror.id,
                changes=[("bidirectional", None, edge.id)],
            )
            repaired.append(mirror)

        if repaired:
            logger.warning("relationship.spouse_mirrors_repaired", tree_id=tree_id, count=len(repaired))
        return repaired

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_family_members(self, person_id: str, user_id: str) -> FamilyMembers:
        person = await self._load_viewable_person(person_id, user_id)

        parents, children, spouses, siblings = await asyncio.gather(
            self.relationships.find_parents(person.id),
            self.relationships.find_children(person.id),
            self.relationships.find_spouses(person.id),
            self.relationships.find_siblings(person.id),
        )
        parent_persons, child_persons, spouse_persons, sibling_persons = await asyncio.gather(
            self._persons_by_ids([r.from_person_id for r in parents]),
            self._persons_by_ids([r.to_person_id for r in children]),
            self._persons_by_ids([r.other_person_id(person.id) for r in spouses]),
            self._persons_by_ids([r.other_person_id(person.id) for r in siblings]),
        )
        return FamilyMembers(
            parents=parent_persons,
            children=child_persons,
            spouses=spouse_persons,
            siblings=sibling_persons,
        )

    async def get_ancestors(
        self, person_id: str, user_id: str, generations: int | None = None
    ) -> AncestryPath:
        """Walk parent edges upward, one generation per layer."""
        person = await self._load_viewable_person(person_id, user_id)
        depth = self.config.default_generations if generations is None else generations
        return await layered_walk(person, parents_of(self.relationships), self.persons, depth)

    async def get_descendants(
        self, person_id: str, user_id: str, generations: int | None = None
    ) -> AncestryPath:
        """Walk parent edges downward, one generation per layer."""
        person = await self._load_viewable_person(person_id, user_id)
        depth = self.config.default_generations if generations is None else generations
        return await layered_walk(person, children_of(self.relationships), self.persons, depth)

    async def check_for_cycles(
        self, from_person_id: str, to_person_id: str, relationship_type: RelationshipType | str
    ) -> bool:
        """Whether a ``from -> to`` parent edge would make someone their own ancestor.

        True when ``to_person_id`` already sits in the ancestor closure of
        ``from_person_id``. Non-parent types never form cycles.
        """
        if not RelationshipType(relationship_type).is_parent_type:
            return False
        closure = await ancestor_closure(self.relationships, from_person_id)
        return to_person_id in closure

    async def get_family_units(self, tree_id: str, user_id: str) -> list[FamilyUnit]:
        await self._require(user_id, tree_id, Action.VIEW_TREE)
        persons, relationships = await asyncio.gather(
            self.persons.find_by_tree_id(tree_id),
            self.relationships.find_by_tree_id(tree_id),
        )
        return build_family_units(persons, relationships)

    async def suggest_relationships(self, person_id: str, user_id: str) -> list[Person]:
        """Persons of the same tree not yet connected to this person, by name.

        Names are collated with ``locale.strxfrm`` under the process's
        ``LC_COLLATE``. The library never calls ``locale.setlocale``; until
        the host application does, the C locale applies and the order is
        plain code-point order.
        """
        person = await self._load_viewable_person(person_id, user_id)
        tree_persons, existing = await asyncio.gather(
            self.persons.find_by_tree_id(person.tree_id),
            self.relationships.find_by_person_id(person.id),
        )
        connected = {edge.other_person_id(person.id) for edge in existing}
        suggestions = [p for p in tree_persons if p.id != person.id and p.id not in connected]
        return sorted(
            suggestions,
            key=lambda p: (locale.strxfrm(p.last_name), locale.strxfrm(p.first_name)),
        )

    async def validate_relationship(self, data: RelationshipCreate) -> list[str]:
        """Pre-flight check returning human-readable problems (empty when valid)."""
        errors = _structural_errors(data.from_person_id, data.to_person_id, data.start_date, data.end_date)

        from_person, to_person = await asyncio.gather(
            self.persons.find_by_id(data.from_person_id),
            self.persons.find_by_id(data.to_person_id),
        )
        if from_person is None:
            errors.append("From person not found")
        if to_person is None:
            errors.append("To person not found")

        if from_person and to_person:
            if from_person.tree_id != to_person.tree_id:
                errors.append(SAME_TREE)
            if data.type.is_parent_type:
                existing_parents = await self.relationships.find_parents(data.to_person_id)
                if len(existing_parents) >= self.config.max_parents:
                    errors.append(f"Person can have maximum {self.config.max_parents} parents")
        return errors

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require(self, user_id: str, tree_id: str, action: Action) -> None:
        if not await self.permissions.can_access(user_id, tree_id, action):
            logger.info("permission.denied", user_id=user_id, tree_id=tree_id, action=action.value)
            raise PermissionError()

    async def _load_pair(self, first_id: str, second_id: str) -> tuple[Person, Person]:
        first, second = await asyncio.gather(
            self.persons.find_by_id(first_id),
            self.persons.find_by_id(second_id),
        )
        if first is None:
            raise NotFoundError("Person", first_id)
        if second is None:
            raise NotFoundError("Person", second_id)
        return first, second

    async def _load_relationship(self, relationship_id: str) -> Relationship:
        relationship = await self.relationships.find_by_id(relationship_id)
        if relationship is None:
            raise NotFoundError("Relationship", relationship_id)
        return relationship

    async def _load_viewable_person(self, person_id: str, user_id: str) -> Person:
        person = await self.persons.find_by_id(person_id)
        if person is None:
            raise NotFoundError("Person", person_id)
        await self._require(user_id, person.tree_id, Action.VIEW_TREE)
        return person

    @staticmethod
    def _require_same_tree(tree_id: str, *persons: Person) -> None:
        if any(p.tree_id != tree_id for p in persons):
            raise BusinessRuleError(SAME_TREE)

    @staticmethod
    def _require_structurally_valid(
        from_id: str, to_id: str, start: date | None, end: date | None
    ) -> None:
        errors = _structural_errors(from_id, to_id, start, end)
        if errors:
            raise ValidationError(errors)

    @staticmethod
    def _require_gender_consistent(parent: Person, relationship_type: RelationshipType) -> None:
        if relationship_type not in (RelationshipType.FATHER, RelationshipType.MOTHER):
            return
        if parent.gender in (Gender.MALE, Gender.FEMALE):
            expected = parent_type_for_gender(parent.gender)
            if expected != relationship_type:
                raise BusinessRuleError(
                    f"{parent.first_name} cannot be recorded as {relationship_type.value}; "
                    f"use {expected.value}"
                )

    async def _require_parent_slot(self, child_id: str) -> None:
        existing_parents = await self.relationships.find_parents(child_id)
        if len(existing_parents) >= self.config.max_parents:
            raise BusinessRuleError(f"Person can have maximum {self.config.max_parents} parents")

    async def _require_unconnected(self, person_a_id: str, person_b_id: str) -> None:
        if await self.relationships.find_between_persons(person_a_id, person_b_id):
            raise BusinessRuleError(DUPLICATE_EDGE)

    async def _require_spouse_available(
        self, person_a: Person, person_b: Person, end_date: date | None
    ) -> None:
        """An ongoing marriage needs both partners free of active spouses."""
        if end_date is not None:
            return
        for person in (person_a, person_b):
            if await self._active_spouses(person.id):
                raise BusinessRuleError(
                    f"{person.first_name} already has an active spouse. "
                    "End the current marriage first."
                )

    async def _require_reopenable(self, edge: Relationship) -> None:
        """Clearing a spouse end date must not create a second active spouse."""
        pair = {edge.from_person_id, edge.to_person_id}
        for person_id in (edge.from_person_id, edge.to_person_id):
            others = [
                r for r in await self._active_spouses(person_id)
                if {r.from_person_id, r.to_person_id} != pair
            ]
            if others:
                raise BusinessRuleError(
                    "Cannot reopen this marriage while a spouse has another active marriage"
                )

    async def _active_spouses(self, person_id: str) -> list[Relationship]:
        edges = await self.relationships.find_by_person_id_and_type(person_id, RelationshipType.SPOUSE)
        return [edge for edge in edges if edge.is_active]

    async def _find_mirror(self, edge: Relationship) -> Relationship | None:
        candidates = await self.relationships.find_by_person_id_and_type(edge.to_person_id, edge.type)
        for candidate in candidates:
            if (
                candidate.id != edge.id
                and candidate.from_person_id == edge.to_person_id
                and candidate.to_person_id == edge.from_person_id
            ):
                return candidate
        return None

    async def _rollback_mirror(self, mirror: Relationship) -> None:
        try:
            await self.relationships.delete(mirror.id)
        except Exception as exc:
            logger.error(
                "relationship.rollback_failed",
                tree_id=mirror.tree_id,
                orphan_id=mirror.id,
                error=str(exc),
            )
        else:
            logger.warning("relationship.spouse_rolled_back", tree_id=mirror.tree_id, mirror_id=mirror.id)

    async def _persons_by_ids(self, person_ids: list[str]) -> list[Person]:
        if not person_ids:
            return []
        return await self.persons.find_by_ids(list(dict.fromkeys(person_ids)))


def _structural_errors(
    from_id: str, to_id: str, start: date | None, end: date | None
) -> list[str]:
    errors: list[str] = []
    if from_id == to_id:
        errors.append(SELF_RELATIONSHIP)
    if start and end and end < start:
        errors.append(DATES_OUT_OF_ORDER)
    return errors
