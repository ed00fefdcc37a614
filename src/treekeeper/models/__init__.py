"""Domain models for trees, persons, relationships and audit entries."""
from .audit import AuditAction, AuditChange, AuditEntry
from .ids import new_id
from .person import Gender, Person
from .relationship import (
    PARENT_RELATIONSHIP_TYPES,
    RelatedPersonSpec,
    Relationship,
    RelationshipCreate,
    RelationshipDetails,
    RelationshipType,
    RelationshipUpdate,
    parent_type_for_gender,
)
from .results import (
    AncestryPath,
    BatchCreateResult,
    BatchFailure,
    FamilyMembers,
    FamilyUnit,
    SpousePair,
)
from .tree import Collaborator, Role, Tree, TreeSettings

__all__ = [
    # Tree
    "Tree",
    "TreeSettings",
    "Collaborator",
    "Role",
    # Person
    "Person",
    "Gender",
    # Relationship
    "Relationship",
    "RelationshipType",
    "RelationshipCreate",
    "RelationshipDetails",
    "RelationshipUpdate",
    "RelatedPersonSpec",
    "PARENT_RELATIONSHIP_TYPES",
    "parent_type_for_gender",
    # Audit
    "AuditEntry",
    "AuditChange",
    "AuditAction",
    # Results
    "FamilyMembers",
    "AncestryPath",
    "FamilyUnit",
    "SpousePair",
    "BatchCreateResult",
    "BatchFailure",
    "new_id",
]
