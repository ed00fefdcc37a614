"""Permission service with a per (user, tree) permission cache.

Example:
    >>> permissions = PermissionService(tree_repository)
    >>> await permissions.can_access(user_id, tree_id, Action.VIEW_TREE)
    True
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from treekeeper.config import CONFIG, TreeKeeperConfig
from treekeeper.logging import get_logger
from treekeeper.models import Role, Tree

from .strategies import (
    ROLE_PERMISSIONS,
    Action,
    AttributeBasedStrategy,
    Decision,
    OwnerOnlyStrategy,
    PermissionStrategy,
    RoleBasedStrategy,
    evaluate_chain,
)

if TYPE_CHECKING:
    from treekeeper.repositories import (
        PersonRepository,
        RelationshipRepository,
        TreeRepository,
    )

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Grant:
    """Everything resolved for one (user, tree) pair."""
    permissions: frozenset[Action]
    role: Role | None
    expires_at: float | None = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


_NO_ACCESS = _Grant(permissions=frozenset(), role=None)


class PermissionService:
    """Decides whether a user may perform an action on a tree.

    The tree is fetched once per (user, tree) pair and every action is
    evaluated against it together. The resulting permission set is cached
    until invalidated (or until the configured TTL runs out), so repeated
    checks for the same pair never hit the repository.

    The cache is guarded by a lock and no await happens while it is held,
    so it is safe from threads and from concurrent tasks alike.
    """

    def __init__(
        self,
        tree_repository: TreeRepository,
        person_repository: PersonRepository | None = None,
        relationship_repository: RelationshipRepository | None = None,
        config: TreeKeeperConfig | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            tree_repository: Source of tree ownership, collaborators and settings
            person_repository: Read-only access for attribute rules
            relationship_repository: Read-only access for attribute rules
            config: Cache settings (defaults to the environment config)
        """
        self.tree_repository = tree_repository
        self.config = config or CONFIG
        # Evaluation order is a business rule: owner, then attributes, then roles
        self._strategies: tuple[PermissionStrategy, ...] = (
            OwnerOnlyStrategy(),
            AttributeBasedStrategy(person_repository, relationship_repository),
            RoleBasedStrategy(),
        )
        self._cache: dict[tuple[str, str], _Grant] = {}
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def strategies(self) -> tuple[PermissionStrategy, ...]:
        return self._strategies

    async def can_access(self, user_id: str, tree_id: str, action: Action) -> bool:
        """Check a single action. A missing tree means no access."""
        grant = await self._resolve(user_id, tree_id)
        return Action(action) in grant.permissions

    async def get_permissions(self, user_id: str, tree_id: str) -> frozenset[Action]:
        grant = await self._resolve(user_id, tree_id)
        return grant.permissions

    async def get_user_role(self, user_id: str, tree_id: str) -> Role | None:
        """Owner, collaborator level, or None for strangers and missing trees."""
        grant = await self._resolve(user_id, tree_id)
        return grant.role

    @staticmethod
    def get_role_permissions(role: Role | str) -> frozenset[Action]:
        """Static permission set of a role; unknown roles have none."""
        try:
            return ROLE_PERMISSIONS[Role(role)]
        except ValueError:
            return frozenset()

    async def has_minimum_role(self, user_id: str, tree_id: str, role: Role | str) -> bool:
        required = Role(role)
        actual = await self.get_user_role(user_id, tree_id)
        return actual is not None and actual.rank >= required.rank

    async def is_owner(self, user_id: str, tree_id: str) -> bool:
        # Collaborators listed at owner level never hold owner-only actions
        return await self.can_access(user_id, tree_id, Action.MANAGE_COLLABORATORS)

    async def can_manage_collaborators(self, user_id: str, tree_id: str) -> bool:
        return await self.can_access(user_id, tree_id, Action.MANAGE_COLLABORATORS)

    async def can_delete_tree(self, user_id: str, tree_id: str) -> bool:
        return await self.can_access(user_id, tree_id, Action.DELETE_TREE)

    async def can_export_tree(self, user_id: str, tree_id: str) -> bool:
        return await self.can_access(user_id, tree_id, Action.EXPORT_TREE)

    def invalidate_cache(self, user_id: str | None = None, tree_id: str | None = None) -> None:
        """Drop cached permission sets.

        With no argument the whole cache is cleared. ``user_id`` drops that
        user's entries on every tree, ``tree_id`` drops every user's entries
        on that tree. Takes effect for the very next check.
        """
        with self._lock:
            self._generation += 1
            if user_id is None and tree_id is None:
                self._cache.clear()
            else:
                for key in list(self._cache):
                    cached_user, cached_tree = key
                    if (user_id is not None and cached_user == user_id) or (
                        tree_id is not None and cached_tree == tree_id
                    ):
                        del self._cache[key]
        logger.debug("permission.cache_invalidated", user_id=user_id, tree_id=tree_id)

    def cached_pairs(self) -> set[tuple[str, str]]:
        with self._lock:
            return set(self._cache)

    async def _resolve(self, user_id: str, tree_id: str) -> _Grant:
        key = (user_id, tree_id)
        now = time.monotonic()
        with self._lock:
            grant = self._cache.get(key)
            if grant is not None and not grant.expired(now):
                return grant
            generation = self._generation

        tree = await self.tree_repository.find_by_id(tree_id)
        if tree is None:
            logger.debug("permission.tree_missing", user_id=user_id, tree_id=tree_id)
            return _NO_ACCESS

        grant = self._evaluate(user_id, tree)
        with self._lock:
            # An invalidation raced with this evaluation; do not resurrect stale data
            if generation == self._generation:
                self._cache[key] = grant
        logger.debug(
            "permission.cache_miss",
            user_id=user_id,
            tree_id=tree_id,
            role=grant.role.value if grant.role else None,
            granted=sorted(a.value for a in grant.permissions),
        )
        return grant

    def _evaluate(self, user_id: str, tree: Tree) -> _Grant:
        granted = frozenset(
            action
            for action in Action
            if evaluate_chain(self._strategies, user_id, tree, action)[0] is Decision.ALLOW
        )
        ttl = self.config.permission_cache_ttl
        expires_at = time.monotonic() + ttl if ttl > 0 else None
        return _Grant(permissions=granted, role=_role_of(user_id, tree), expires_at=expires_at)


def _role_of(user_id: str, tree: Tree) -> Role | None:
    if tree.owner_id == user_id:
        return Role.OWNER
    collaborator = tree.find_collaborator(user_id)
    return collaborator.permission if collaborator else None
