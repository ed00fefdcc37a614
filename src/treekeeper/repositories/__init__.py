"""Repository interfaces and the in-memory development backend."""
from .base import (
    AuditRepository,
    PersonRepository,
    RelationshipRepository,
    TreeRepository,
)
from .memory import (
    InMemoryAuditRepository,
    InMemoryPersonRepository,
    InMemoryRelationshipRepository,
    InMemoryTreeRepository,
)

__all__ = [
    # Interfaces
    "PersonRepository",
    "TreeRepository",
    "RelationshipRepository",
    "AuditRepository",
    # In-memory backend
    "InMemoryPersonRepository",
    "InMemoryTreeRepository",
    "InMemoryRelationshipRepository",
    "InMemoryAuditRepository",
]
