"""Boolean flag parsing shared by env-based and mapping-based config."""

from __future__ import annotations

from typing import Any, Final

TRUTHY_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})


def parse_flag(value: Any) -> bool:
    """Return ``True`` for real booleans or strings in :data:`TRUTHY_VALUES` (any case)."""
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_VALUES
    return bool(value)
