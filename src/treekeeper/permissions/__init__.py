"""Authorization engine: permission strategies and the caching service."""
from .service import PermissionService
from .strategies import (
    ALL_ACTIONS,
    OWNER_ONLY_ACTIONS,
    ROLE_PERMISSIONS,
    VIEW_ACTIONS,
    Action,
    AttributeBasedStrategy,
    Decision,
    OwnerOnlyStrategy,
    PermissionStrategy,
    RoleBasedStrategy,
    evaluate_chain,
)

__all__ = [
    "PermissionService",
    # Strategies
    "PermissionStrategy",
    "OwnerOnlyStrategy",
    "AttributeBasedStrategy",
    "RoleBasedStrategy",
    "evaluate_chain",
    # Vocabulary
    "Action",
    "Decision",
    "ALL_ACTIONS",
    "OWNER_ONLY_ACTIONS",
    "VIEW_ACTIONS",
    "ROLE_PERMISSIONS",
]
