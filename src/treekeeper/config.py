from __future__ import annotations

import os
from dataclasses import dataclass

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except Exception:
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except Exception:
        return default


def _level(name: str, default: str) -> str:
    value = os.getenv(name, default).upper()
    return value if value in _LOG_LEVELS else default


@dataclass(frozen=True)
class TreeKeeperConfig:
    # Seconds a cached permission set stays valid; <= 0 keeps entries until invalidated
    permission_cache_ttl: float = _f("TREEKEEPER_PERMISSION_CACHE_TTL", 60.0)

    # Graph limits
    max_parents: int = _i("TREEKEEPER_MAX_PARENTS", 2)
    default_generations: int = _i("TREEKEEPER_DEFAULT_GENERATIONS", 10)

    log_level: str = _level("TREEKEEPER_LOG_LEVEL", "INFO")


CONFIG = TreeKeeperConfig()
