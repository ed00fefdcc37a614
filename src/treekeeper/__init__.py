"""treekeeper - authorization and relationship graph engines for family trees.

Two coupled services make up the core:
- PermissionService decides who may do what on a tree
- RelationshipGraphService keeps the family graph structurally sound
"""

__version__ = "0.1.0"

# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    if name == "PermissionService":
        from treekeeper.permissions import PermissionService
        return PermissionService
    if name == "RelationshipGraphService":
        from treekeeper.graph import RelationshipGraphService
        return RelationshipGraphService
    if name == "models":
        from treekeeper import models
        return models
    if name == "repositories":
        from treekeeper import repositories
        return repositories
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
