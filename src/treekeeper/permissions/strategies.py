"""Permission strategies.

Each strategy answers one authorization question for a resolved tree:
ALLOW, DENY, or ABSTAIN when it has nothing to say. Strategies are pure
and never raise for "not applicable".

The set is closed. PermissionService evaluates them in a fixed order
(owner-only, attribute-based, role-based) and the first non-ABSTAIN
verdict wins.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from treekeeper.models import Role, Tree

if TYPE_CHECKING:
    from treekeeper.repositories import PersonRepository, RelationshipRepository


class Action(str, Enum):
    """Operations that can be authorized on a tree."""
    VIEW_TREE = "view_tree"
    EDIT_TREE = "edit_tree"
    DELETE_TREE = "delete_tree"
    ADD_PERSON = "add_person"
    EDIT_PERSON = "edit_person"
    DELETE_PERSON = "delete_person"
    ADD_RELATIONSHIP = "add_relationship"
    MANAGE_COLLABORATORS = "manage_collaborators"
    EXPORT_TREE = "export_tree"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    ABSTAIN = "abstain"


ALL_ACTIONS = frozenset(Action)

# Only the tree owner may perform these; no other strategy grants them
OWNER_ONLY_ACTIONS = frozenset({Action.DELETE_TREE, Action.MANAGE_COLLABORATORS})

VIEW_ACTIONS = frozenset({Action.VIEW_TREE})

_VIEWER = frozenset({Action.VIEW_TREE, Action.EXPORT_TREE})
_EDITOR = _VIEWER | {
    Action.EDIT_TREE,
    Action.ADD_PERSON,
    Action.EDIT_PERSON,
    Action.ADD_RELATIONSHIP,
}

ROLE_PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.VIEWER: _VIEWER,
    Role.EDITOR: frozenset(_EDITOR),
    Role.OWNER: ALL_ACTIONS,
}


class PermissionStrategy(ABC):
    """A single authorization rule."""

    name: str

    @abstractmethod
    def evaluate(self, user_id: str, tree: Tree, action: Action) -> Decision:
        ...


class OwnerOnlyStrategy(PermissionStrategy):
    """The tree owner may do anything, including owner-only actions."""

    name = "owner-only"

    def evaluate(self, user_id: str, tree: Tree, action: Action) -> Decision:
        if tree.owner_id == user_id:
            return Decision.ALLOW
        return Decision.ABSTAIN


class AttributeBasedStrategy(PermissionStrategy):
    """Rules derived from tree attributes.

    Currently a public tree is viewable by anyone. Repositories are
    accepted for per-person rules and are only ever read.
    """

    name = "abac"

    def __init__(
        self,
        person_repository: PersonRepository | None = None,
        relationship_repository: RelationshipRepository | None = None,
    ) -> None:
        self.person_repository = person_repository
        self.relationship_repository = relationship_repository

    def evaluate(self, user_id: str, tree: Tree, action: Action) -> Decision:
        if action in VIEW_ACTIONS and tree.settings.is_public:
            return Decision.ALLOW
        return Decision.ABSTAIN


class RoleBasedStrategy(PermissionStrategy):
    """Collaborator role mapped to a static permission set."""

    name = "rbac"

    def evaluate(self, user_id: str, tree: Tree, action: Action) -> Decision:
        collaborator = tree.find_collaborator(user_id)
        if collaborator is None:
            return Decision.ABSTAIN
        if action in self.effective_permissions(collaborator.permission):
            return Decision.ALLOW
        return Decision.DENY

    @staticmethod
    def effective_permissions(role: Role) -> frozenset[Action]:
        """Role permissions minus anything reserved for the real owner."""
        return ROLE_PERMISSIONS[role] - OWNER_ONLY_ACTIONS


def evaluate_chain(
    strategies: tuple[PermissionStrategy, ...],
    user_id: str,
    tree: Tree,
    action: Action,
) -> tuple[Decision, str | None]:
    """Return the first non-abstaining verdict and the strategy that gave it.

    Denies when every strategy abstains.
    """
    for strategy in strategies:
        decision = strategy.evaluate(user_id, tree, action)
        if decision is not Decision.ABSTAIN:
            return decision, strategy.name
    return Decision.DENY, None
