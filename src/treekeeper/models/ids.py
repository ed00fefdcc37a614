from __future__ import annotations

from uuid_utils import uuid7


def new_id() -> str:
    """Generate a time-ordered identifier (UUID7) as a string."""
    return str(uuid7())
