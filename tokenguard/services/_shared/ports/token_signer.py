from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol


class TokenSigner(Protocol):
    """
    Port for producing and validating compact signed tokens.

    Implementations set ``iat`` and ``exp`` themselves; callers never supply
    them. Any signature, expiry, format or issuer/audience violation must be
    raised as :class:`~tokenguard.services._shared.errors.TokenError`.
    """

    def sign(
        self,
        claims: dict[str, Any],
        *,
        secret: str,
        expires_in: timedelta,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> str: ...

    def verify(
        self,
        token: str,
        *,
        secret: str,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> dict[str, Any]: ...
