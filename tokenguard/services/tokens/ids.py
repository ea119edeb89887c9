from __future__ import annotations

from uuid import uuid4


def new_token_id() -> str:
    """Return a fresh random token identifier (canonical uuid4 string)."""
    return str(uuid4())
