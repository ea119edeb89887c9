"""Claim-set assembly shared by access and refresh issuance."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from tokenguard.services.tokens.dto import TokenType

# Claim names owned by the system; caller attributes can never set them.
RESERVED_CLAIMS: Final[frozenset[str]] = frozenset(
    {"sub", "jti", "typ", "iat", "exp", "nbf", "iss", "aud"}
)


def strip_reserved(attributes: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of ``attributes`` without any :data:`RESERVED_CLAIMS` key."""
    if not attributes:
        return {}
    return {k: v for k, v in attributes.items() if k not in RESERVED_CLAIMS}


def build_claims(
    *,
    subject: str,
    token_id: str,
    token_type: TokenType,
    extra: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build the payload handed to the signer.

    ``iat``/``exp``/``iss``/``aud`` are added by the signer itself.
    """
    claims = strip_reserved(extra)
    claims.update(
        {
            "sub": subject,
            "jti": token_id,
            "typ": token_type.value,
        }
    )
    return claims
