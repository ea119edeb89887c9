"""Token issuance, verification and refresh-token rotation."""

from __future__ import annotations

from .claims import RESERVED_CLAIMS
from .dto import ClaimSet, IssuedToken, JwtConfig, ResolvedJwtConfig, TokenPair, TokenType
from .service import TokenManager

__all__ = [
    "RESERVED_CLAIMS",
    "ClaimSet",
    "IssuedToken",
    "JwtConfig",
    "ResolvedJwtConfig",
    "TokenManager",
    "TokenPair",
    "TokenType",
]
