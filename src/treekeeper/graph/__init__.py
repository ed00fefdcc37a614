"""Relationship graph engine.

Provides:
- RelationshipGraphService for invariant-checked mutations and queries
- Iterative traversal helpers (ancestor closure, layered walks, family units)
"""
from .service import RelationshipGraphService
from .traversal import (
    ancestor_closure,
    build_family_units,
    children_of,
    layered_walk,
    pair_key,
    parents_of,
)

__all__ = [
    "RelationshipGraphService",
    "ancestor_closure",
    "build_family_units",
    "layered_walk",
    "parents_of",
    "children_of",
    "pair_key",
]
