"""Tests for the in-memory repositories and the audit recorder."""
from __future__ import annotations

import pytest

from treekeeper.audit import AuditRecorder
from treekeeper.errors import AuditWriteWarning
from treekeeper.models import AuditAction, Person, Relationship, RelationshipType
from treekeeper.repositories import (
    InMemoryAuditRepository,
    InMemoryPersonRepository,
    InMemoryRelationshipRepository,
)


def edge(from_id: str, to_id: str, relationship_type: RelationshipType, tree_id: str = "t1") -> Relationship:
    return Relationship(tree_id=tree_id, from_person_id=from_id, to_person_id=to_id, type=relationship_type)


class TestInMemoryPersonRepository:

    @pytest.mark.asyncio
    async def test_find_by_ids_keeps_order_and_skips_missing(self):
        repo = InMemoryPersonRepository(
            [Person(id=pid, tree_id="t1", first_name=pid.upper()) for pid in ("a", "b", "c")]
        )
        found = await repo.find_by_ids(["c", "missing", "a"])
        assert [p.id for p in found] == ["c", "a"]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        repo = InMemoryPersonRepository([Person(id="a", tree_id="t1", first_name="Ada")])
        person = await repo.find_by_id("a")
        person.first_name = "Changed"
        assert (await repo.find_by_id("a")).first_name == "Ada"

    @pytest.mark.asyncio
    async def test_delete_by_tree_id(self):
        repo = InMemoryPersonRepository(
            [
                Person(id="a", tree_id="t1", first_name="A"),
                Person(id="b", tree_id="t2", first_name="B"),
            ]
        )
        assert await repo.delete_by_tree_id("t1") == 1
        assert [p.id for p in await repo.find_by_tree_id("t2")] == ["b"]


class TestInMemoryRelationshipRepository:

    @pytest.fixture()
    def repo(self) -> InMemoryRelationshipRepository:
        return InMemoryRelationshipRepository(
            [
                edge("dad", "kid", RelationshipType.FATHER),
                edge("mom", "kid", RelationshipType.MOTHER),
                edge("dad", "mom", RelationshipType.SPOUSE),
                edge("mom", "dad", RelationshipType.SPOUSE),
                edge("kid2", "kid", RelationshipType.SIBLING),
            ]
        )

    @pytest.mark.asyncio
    async def test_family_lookups(self, repo):
        assert [r.from_person_id for r in await repo.find_parents("kid")] == ["dad", "mom"]
        assert [r.to_person_id for r in await repo.find_children("dad")] == ["kid"]
        assert [r.to_person_id for r in await repo.find_spouses("dad")] == ["mom"]
        assert len(await repo.find_siblings("kid")) == 1
        assert len(await repo.find_siblings("kid2")) == 1

    @pytest.mark.asyncio
    async def test_between_persons_ignores_direction(self, repo):
        assert (await repo.find_between_persons("kid", "kid2")).type == RelationshipType.SIBLING
        assert await repo.find_between_persons("kid2", "mom") is None

    @pytest.mark.asyncio
    async def test_update_and_delete(self, repo):
        sibling = (await repo.find_siblings("kid"))[0]
        updated = await repo.update(sibling.id, {"notes": "half-siblings"})
        assert updated.notes == "half-siblings"
        assert updated.updated_at >= sibling.updated_at

        assert await repo.delete(sibling.id)
        assert not await repo.delete(sibling.id)
        with pytest.raises(KeyError):
            await repo.update(sibling.id, {"notes": "gone"})

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, repo):
        existing = (await repo.find_by_tree_id("t1"))[0]
        with pytest.raises(KeyError):
            await repo.create(existing)


class TestAuditRecorder:

    @pytest.mark.asyncio
    async def test_records_changes(self):
        repo = InMemoryAuditRepository()
        recorder = AuditRecorder(repo)

        entry = await recorder.record(
            tree_id="t1",
            user_id="u1",
            action=AuditAction.UPDATE,
            entity_id="r1",
            changes=[("notes", None, "twins")],
        )

        assert repo.entries == [entry]
        assert entry.entity_type == "Relationship"
        assert entry.changes[0].new_value == "twins"

    @pytest.mark.asyncio
    async def test_sink_failure_becomes_warning(self):
        class BrokenSink(InMemoryAuditRepository):
            async def create(self, entry):
                raise ConnectionError("sink offline")

        recorder = AuditRecorder(BrokenSink())
        with pytest.warns(AuditWriteWarning, match="sink offline"):
            result = await recorder.record(
                tree_id="t1", user_id="u1", action=AuditAction.DELETE, entity_id="r1"
            )
        assert result is None
