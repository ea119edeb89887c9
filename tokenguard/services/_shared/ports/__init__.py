"""
tokenguard.services._shared.ports
=================================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token signing and refresh-token persistence.

Modules
-------
- :mod:`token_signer`:
    Defines :class:`~.TokenSigner`, the abstraction over JWT signing and verification.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenRecord`,
    plus :class:`~.InMemoryRefreshTokenStore`.

Design Notes
------------
Concrete adapters (PyJWT, Redis, SQLAlchemy) live under ``tokenguard.infra``
and must implement these interfaces.
"""

from __future__ import annotations

from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from .token_signer import TokenSigner

__all__ = [
    "TokenSigner",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "InMemoryRefreshTokenStore",
]
