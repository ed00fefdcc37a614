"""Audit recording for relationship mutations.

Audit writes are fire-and-forget: a failing audit sink never aborts the
mutation it describes. The failure is logged and raised to the caller as
an ``AuditWriteWarning`` so it is visible without being fatal.
"""
from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Any

from treekeeper.errors import AuditWriteWarning
from treekeeper.logging import get_logger
from treekeeper.models import AuditAction, AuditChange, AuditEntry

if TYPE_CHECKING:
    from treekeeper.repositories import AuditRepository

logger = get_logger(__name__)


class AuditRecorder:
    """Builds audit entries and hands them to the audit repository."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def record(
        self,
        *,
        tree_id: str,
        user_id: str,
        action: AuditAction,
        entity_id: str,
        changes: list[tuple[str, Any, Any]] | None = None,
        entity_type: str = "Relationship",
    ) -> AuditEntry | None:
        """Write one entry; returns None when the sink failed."""
        entry = AuditEntry(
            tree_id=tree_id,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            changes=[
                AuditChange(field=name, old_value=old, new_value=new)
                for name, old, new in (changes or [])
            ],
        )
        try:
            return await self.repository.create(entry)
        except Exception as exc:
            logger.warning(
                "audit.write_failed",
                tree_id=tree_id,
                entity_id=entity_id,
                action=action.value,
                error=str(exc),
            )
            warnings.warn(
                f"audit entry for {entity_type} {entity_id} ({action.value}) was not written: {exc}",
                AuditWriteWarning,
                stacklevel=2,
            )
            return None
