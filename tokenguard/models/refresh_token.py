"""Refresh-token record table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, false
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, ReprMixin, TimestampMixin


class RefreshToken(ReprMixin, TimestampMixin, Base):
    """
    Revocation state of one minted refresh token.

    Fields
    ------
    token_id : str
        The token's ``jti``; primary key.
    user_id : str
        Owner (the token subject). Indexed for per-user sweeps.
    revoked : bool
        Starts ``False``; set by rotation or a reuse sweep. Rows are never
        deleted by the token service.
    expires_at : datetime
        Absolute expiry of the token.
    """

    __tablename__ = "refresh_tokens"
    __repr_key__ = "token_id"

    token_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("ix_refresh_tokens_user_id", "user_id"),)
