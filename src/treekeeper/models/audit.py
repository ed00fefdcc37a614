"""Audit log entries written for every relationship mutation."""
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .ids import new_id


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditChange(BaseModel):
    """A single field transition recorded with an audit entry."""

    field: str
    old_value: Any = None
    new_value: Any = None


class AuditEntry(BaseModel):
    """Write-only record of a mutation."""

    id: str = Field(default_factory=new_id)
    tree_id: str
    user_id: str
    action: AuditAction
    entity_type: str = "Relationship"
    entity_id: str
    changes: list[AuditChange] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
