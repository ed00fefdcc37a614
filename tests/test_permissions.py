"""Tests for permission strategies and the caching permission service."""
from __future__ import annotations

import asyncio
import types

import pytest

from treekeeper.config import TreeKeeperConfig
from treekeeper.models import Collaborator, Role, Tree, TreeSettings
from treekeeper.permissions import (
    ALL_ACTIONS,
    OWNER_ONLY_ACTIONS,
    Action,
    AttributeBasedStrategy,
    Decision,
    OwnerOnlyStrategy,
    PermissionService,
    RoleBasedStrategy,
    evaluate_chain,
)
from treekeeper.permissions import service as service_module
from treekeeper.repositories import InMemoryTreeRepository


# ---------------------- Test helpers ----------------------

class CountingTreeRepository(InMemoryTreeRepository):
    """Tree repository that counts lookups."""

    def __init__(self, trees=()):
        super().__init__(trees)
        self.lookups = 0

    async def find_by_id(self, tree_id):
        self.lookups += 1
        return await super().find_by_id(tree_id)


class GatedTreeRepository(CountingTreeRepository):
    """Holds every lookup until ``release`` is set."""

    def __init__(self, trees=()):
        super().__init__(trees)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def find_by_id(self, tree_id):
        self.entered.set()
        await self.release.wait()
        return await super().find_by_id(tree_id)


def make_tree(
    tree_id: str = "T1",
    owner_id: str = "U1",
    collaborators: dict[str, Role] | None = None,
    is_public: bool = False,
) -> Tree:
    return Tree(
        id=tree_id,
        owner_id=owner_id,
        collaborators=[
            Collaborator(user_id=user_id, permission=role)
            for user_id, role in (collaborators or {}).items()
        ],
        settings=TreeSettings(is_public=is_public),
    )


@pytest.fixture()
def trees() -> CountingTreeRepository:
    return CountingTreeRepository(
        [
            make_tree("T1", "U1", {"U2": Role.EDITOR, "U3": Role.VIEWER}),
            make_tree("T2", "U1", {"U3": Role.VIEWER}, is_public=True),
        ]
    )


@pytest.fixture()
def service(trees) -> PermissionService:
    return PermissionService(trees, config=TreeKeeperConfig(permission_cache_ttl=60.0))


# ---------------------- Strategy tests ----------------------

class TestStrategies:
    """Tests for the individual permission strategies."""

    def test_owner_allows_everything(self):
        tree = make_tree()
        strategy = OwnerOnlyStrategy()
        for action in Action:
            assert strategy.evaluate("U1", tree, action) is Decision.ALLOW

    def test_owner_strategy_abstains_for_others(self):
        assert OwnerOnlyStrategy().evaluate("U9", make_tree(), Action.VIEW_TREE) is Decision.ABSTAIN

    def test_attribute_allows_view_on_public_tree(self):
        strategy = AttributeBasedStrategy()
        tree = make_tree(is_public=True)
        assert strategy.evaluate("U9", tree, Action.VIEW_TREE) is Decision.ALLOW
        assert strategy.evaluate("U9", tree, Action.EDIT_TREE) is Decision.ABSTAIN

    def test_attribute_abstains_on_private_tree(self):
        assert AttributeBasedStrategy().evaluate("U9", make_tree(), Action.VIEW_TREE) is Decision.ABSTAIN

    def test_role_based_decisions(self):
        strategy = RoleBasedStrategy()
        tree = make_tree(collaborators={"U2": Role.EDITOR, "U3": Role.VIEWER})

        assert strategy.evaluate("U2", tree, Action.ADD_RELATIONSHIP) is Decision.ALLOW
        assert strategy.evaluate("U2", tree, Action.DELETE_TREE) is Decision.DENY
        assert strategy.evaluate("U3", tree, Action.VIEW_TREE) is Decision.ALLOW
        assert strategy.evaluate("U3", tree, Action.EDIT_TREE) is Decision.DENY
        assert strategy.evaluate("U9", tree, Action.VIEW_TREE) is Decision.ABSTAIN

    def test_owner_level_collaborator_never_gets_owner_only_actions(self):
        """Owner-only actions belong to the real owner alone."""
        strategy = RoleBasedStrategy()
        tree = make_tree(collaborators={"U5": Role.OWNER})
        for action in OWNER_ONLY_ACTIONS:
            assert strategy.evaluate("U5", tree, action) is Decision.DENY
        assert strategy.evaluate("U5", tree, Action.DELETE_PERSON) is Decision.ALLOW

    def test_chain_first_verdict_wins(self):
        strategies = (OwnerOnlyStrategy(), AttributeBasedStrategy(), RoleBasedStrategy())
        tree = make_tree(collaborators={"U3": Role.VIEWER}, is_public=True)

        assert evaluate_chain(strategies, "U1", tree, Action.DELETE_TREE) == (Decision.ALLOW, "owner-only")
        assert evaluate_chain(strategies, "U3", tree, Action.VIEW_TREE) == (Decision.ALLOW, "abac")
        assert evaluate_chain(strategies, "U3", tree, Action.EDIT_TREE) == (Decision.DENY, "rbac")

    def test_chain_denies_when_all_abstain(self):
        strategies = (OwnerOnlyStrategy(), AttributeBasedStrategy(), RoleBasedStrategy())
        assert evaluate_chain(strategies, "U9", make_tree(), Action.VIEW_TREE) == (Decision.DENY, None)

    def test_service_uses_fixed_order(self, service):
        assert [s.name for s in service.strategies] == ["owner-only", "abac", "rbac"]


# ---------------------- Service tests ----------------------

class TestCanAccess:
    """Tests for PermissionService.can_access."""

    @pytest.mark.asyncio
    async def test_owner_always_wins(self, service):
        """Owner is not a listed collaborator and may still delete the tree."""
        assert await service.can_access("U1", "T1", Action.DELETE_TREE)
        assert await service.can_access("U1", "T1", Action.MANAGE_COLLABORATORS)

    @pytest.mark.asyncio
    async def test_public_tree_view_for_stranger(self, service):
        assert await service.can_access("U9", "T2", Action.VIEW_TREE)
        assert not await service.can_access("U9", "T2", Action.EDIT_TREE)

    @pytest.mark.asyncio
    async def test_private_tree_denies_stranger(self, service):
        assert not await service.can_access("U9", "T1", Action.VIEW_TREE)

    @pytest.mark.asyncio
    async def test_editor_permissions(self, service):
        assert await service.can_access("U2", "T1", Action.EDIT_TREE)
        assert await service.can_access("U2", "T1", Action.ADD_RELATIONSHIP)
        assert not await service.can_access("U2", "T1", Action.DELETE_TREE)
        assert not await service.can_access("U2", "T1", Action.MANAGE_COLLABORATORS)

    @pytest.mark.asyncio
    async def test_missing_tree_is_no_access(self, service, trees):
        """Absence is reported as denial, never as an error."""
        assert not await service.can_access("U1", "missing", Action.VIEW_TREE)
        assert await service.get_permissions("U1", "missing") == frozenset()
        assert await service.get_user_role("U1", "missing") is None
        assert ("U1", "missing") not in service.cached_pairs()

    @pytest.mark.asyncio
    async def test_accepts_action_values(self, service):
        assert await service.can_access("U3", "T1", "view_tree")


class TestPermissionCache:
    """Tests for the per (user, tree) cache."""

    @pytest.mark.asyncio
    async def test_second_call_hits_cache(self, service, trees):
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        assert trees.lookups == 1

    @pytest.mark.asyncio
    async def test_cache_covers_every_action(self, service, trees):
        """One lookup serves all actions for the pair."""
        for action in Action:
            await service.can_access("U2", "T1", action)
        await service.get_permissions("U2", "T1")
        await service.has_minimum_role("U2", "T1", Role.EDITOR)
        assert trees.lookups == 1

    @pytest.mark.asyncio
    async def test_invalidate_user_is_immediate(self, service, trees):
        assert await service.can_access("U2", "T1", Action.EDIT_TREE)

        # Collaborator removed behind the cache
        trees.add(make_tree("T1", "U1", {"U3": Role.VIEWER}))
        assert await service.can_access("U2", "T1", Action.EDIT_TREE)

        service.invalidate_cache("U2")
        assert not await service.can_access("U2", "T1", Action.EDIT_TREE)
        assert trees.lookups == 2

    @pytest.mark.asyncio
    async def test_invalidate_user_keeps_other_users(self, service):
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        await service.can_access("U3", "T1", Action.VIEW_TREE)
        await service.can_access("U3", "T2", Action.VIEW_TREE)

        service.invalidate_cache("U3")
        assert service.cached_pairs() == {("U2", "T1")}

    @pytest.mark.asyncio
    async def test_invalidate_tree(self, service):
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        await service.can_access("U3", "T1", Action.VIEW_TREE)
        await service.can_access("U3", "T2", Action.VIEW_TREE)

        service.invalidate_cache(tree_id="T1")
        assert service.cached_pairs() == {("U3", "T2")}

    @pytest.mark.asyncio
    async def test_invalidate_all(self, service, trees):
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        await service.can_access("U3", "T2", Action.VIEW_TREE)

        service.invalidate_cache()
        assert service.cached_pairs() == set()

        await service.can_access("U2", "T1", Action.VIEW_TREE)
        assert trees.lookups == 3

    @pytest.mark.asyncio
    async def test_entries_expire_after_ttl(self, trees, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(service_module, "time", types.SimpleNamespace(monotonic=lambda: now[0]))
        service = PermissionService(trees, config=TreeKeeperConfig(permission_cache_ttl=30.0))

        await service.can_access("U2", "T1", Action.VIEW_TREE)
        now[0] += 29.0
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        assert trees.lookups == 1

        now[0] += 2.0
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        assert trees.lookups == 2

    @pytest.mark.asyncio
    async def test_zero_ttl_never_expires(self, trees, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(service_module, "time", types.SimpleNamespace(monotonic=lambda: now[0]))
        service = PermissionService(trees, config=TreeKeeperConfig(permission_cache_ttl=0))

        await service.can_access("U2", "T1", Action.VIEW_TREE)
        now[0] += 10_000.0
        await service.can_access("U2", "T1", Action.VIEW_TREE)
        assert trees.lookups == 1

    @pytest.mark.asyncio
    async def test_invalidation_during_lookup_is_not_cached(self):
        """A result read before an invalidation must not land in the cache."""
        trees = GatedTreeRepository([make_tree("T1", "U1", {"U2": Role.EDITOR})])
        service = PermissionService(trees, config=TreeKeeperConfig(permission_cache_ttl=60.0))

        pending = asyncio.create_task(service.can_access("U2", "T1", Action.EDIT_TREE))
        await trees.entered.wait()
        service.invalidate_cache(tree_id="T1")
        trees.release.set()

        assert await pending
        assert service.cached_pairs() == set()

        await service.can_access("U2", "T1", Action.EDIT_TREE)
        assert trees.lookups == 2
        assert service.cached_pairs() == {("U2", "T1")}


class TestIntrospection:
    """Tests for role and permission introspection."""

    @pytest.mark.asyncio
    async def test_owner_gets_full_set(self, service):
        assert await service.get_permissions("U1", "T1") == ALL_ACTIONS

    @pytest.mark.asyncio
    async def test_public_stranger_gets_view_only(self, service):
        assert await service.get_permissions("U9", "T2") == {Action.VIEW_TREE}

    @pytest.mark.asyncio
    async def test_viewer_on_public_tree(self, service):
        assert await service.get_permissions("U3", "T2") == {Action.VIEW_TREE, Action.EXPORT_TREE}

    def test_role_permissions_are_nested(self):
        viewer = PermissionService.get_role_permissions(Role.VIEWER)
        editor = PermissionService.get_role_permissions("editor")
        owner = PermissionService.get_role_permissions(Role.OWNER)

        assert viewer < editor < owner
        assert owner == ALL_ACTIONS
        assert Action.ADD_RELATIONSHIP in editor
        assert Action.DELETE_TREE not in editor

    def test_unknown_role_has_no_permissions(self):
        assert PermissionService.get_role_permissions("admin") == frozenset()

    @pytest.mark.asyncio
    async def test_has_minimum_role(self, service):
        assert await service.has_minimum_role("U1", "T1", Role.OWNER)
        assert await service.has_minimum_role("U2", "T1", Role.EDITOR)
        assert await service.has_minimum_role("U2", "T1", Role.VIEWER)
        assert not await service.has_minimum_role("U2", "T1", Role.OWNER)
        assert not await service.has_minimum_role("U3", "T1", "editor")
        assert not await service.has_minimum_role("U9", "T2", Role.VIEWER)

    @pytest.mark.asyncio
    async def test_user_roles(self, service):
        assert await service.get_user_role("U1", "T1") is Role.OWNER
        assert await service.get_user_role("U2", "T1") is Role.EDITOR
        assert await service.get_user_role("U9", "T1") is None

    @pytest.mark.asyncio
    async def test_owner_helpers(self, service):
        assert await service.is_owner("U1", "T1")
        assert not await service.is_owner("U2", "T1")
        assert await service.can_manage_collaborators("U1", "T1")
        assert await service.can_delete_tree("U1", "T1")
        assert not await service.can_delete_tree("U2", "T1")
        assert await service.can_export_tree("U3", "T1")
        assert not await service.can_export_tree("U9", "T2")
