"""SQLAlchemy models backing the persistent refresh-token store."""

from __future__ import annotations

from .base import Base
from .refresh_token import RefreshToken

__all__ = ["Base", "RefreshToken"]
