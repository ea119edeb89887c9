"""
tokenguard
==========

Issue, verify and rotate JWT access/refresh tokens. Refresh tokens are
tracked in a store so that a replayed (already rotated or unknown) refresh
token revokes every session of its user.
"""

from __future__ import annotations

from tokenguard.services._shared.errors import (
    ConfigurationError,
    InvalidTokenTypeError,
    ReuseDetectedError,
    TokenError,
    TokenSerializationError,
    TokenServiceError,
)
from tokenguard.services._shared.ports import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
    TokenSigner,
)
from tokenguard.services.tokens import (
    RESERVED_CLAIMS,
    ClaimSet,
    IssuedToken,
    JwtConfig,
    ResolvedJwtConfig,
    TokenManager,
    TokenPair,
    TokenType,
)
from tokenguard.services.tokens.durations import parse_duration

__all__ = [
    "RESERVED_CLAIMS",
    "ClaimSet",
    "ConfigurationError",
    "InMemoryRefreshTokenStore",
    "InvalidTokenTypeError",
    "IssuedToken",
    "JwtConfig",
    "RefreshTokenRecord",
    "RefreshTokenStore",
    "ResolvedJwtConfig",
    "ReuseDetectedError",
    "TokenError",
    "TokenManager",
    "TokenPair",
    "TokenSerializationError",
    "TokenServiceError",
    "TokenSigner",
    "TokenType",
    "parse_duration",
]
