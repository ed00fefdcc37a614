"""Error taxonomy raised by the authorization and graph services.

Every error carries structured data so callers can render a message
without parsing strings. The boundary layer maps these to status codes.
"""
from __future__ import annotations

from dataclasses import dataclass, field


class TreeServiceError(Exception):
    """Base class for domain errors raised by treekeeper services."""


@dataclass
class ValidationError(TreeServiceError):
    """Client input is structurally wrong.

    Raised before any repository write.
    """

    errors: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Validation failed: {', '.join(self.errors)}"


@dataclass
class NotFoundError(TreeServiceError):
    """A referenced person, relationship or tree does not exist."""

    entity: str
    entity_id: str

    def __str__(self) -> str:
        return f"{self.entity} with id {self.entity_id} not found"


@dataclass
class PermissionError(TreeServiceError):  # noqa: A001 - domain name
    """Authorization was denied.

    The message never says whether the tree is missing or the role is
    insufficient.
    """

    message: str = "Permission denied"

    def __str__(self) -> str:
        return self.message


@dataclass
class BusinessRuleError(TreeServiceError):
    """Structurally valid request that would break a graph invariant.

    Scenarios:
    - Parent-type edge that closes a cycle
    - Third parent for a person
    - Duplicate edge between two persons
    - Persons from different trees
    - Second active spouse
    """

    rule: str

    def __str__(self) -> str:
        return f"Business rule violation: {self.rule}"


class AuditWriteWarning(UserWarning):
    """An audit entry could not be persisted; the mutation itself succeeded."""
