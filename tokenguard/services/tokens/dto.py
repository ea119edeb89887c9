# tokenguard/services/tokens/dto.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from tokenguard.services._shared.errors import ConfigurationError
from tokenguard.services._shared.flags import parse_flag
from tokenguard.services.tokens.durations import (
    DEFAULT_ACCESS_TTL,
    DEFAULT_REFRESH_TTL,
    Duration,
    duration_to_seconds,
    parse_duration,
)

log = logging.getLogger(__name__)


class TokenType(str, Enum):
    """Value of the ``typ`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """
    A freshly signed token and its identifier.

    :param token: Encoded JWT.
    :type token: str
    :param token_id: The ``jti`` embedded in the token.
    :type token_id: str
    """

    token: str
    token_id: str


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Output DTO with access and refresh tokens.

    :param access: Issued access token.
    :type access: IssuedToken
    :param refresh: Issued refresh token.
    :type refresh: IssuedToken
    """

    access: IssuedToken
    refresh: IssuedToken

    @property
    def access_token(self) -> str:
        return self.access.token

    @property
    def refresh_token(self) -> str:
        return self.refresh.token


@dataclass(frozen=True, slots=True)
class ClaimSet:
    """
    Verified token payload.

    :ivar subject: Opaque user identifier (``sub``).
    :ivar token_id: Unique token identifier (``jti``).
    :ivar token_type: ``typ`` claim.
    :ivar issued_at: ``iat`` as an aware UTC datetime.
    :ivar expires_at: ``exp`` as an aware UTC datetime.
    :ivar issuer: ``iss`` when present.
    :ivar audience: ``aud`` when present.
    :ivar extra: Any other (caller-supplied) claims.
    """

    subject: str
    token_id: str
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime
    issuer: str | None = None
    audience: str | list[str] | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ClaimSet:
        """Build a claim set from a decoded (already validated) JWT payload."""
        known = {"sub", "jti", "typ", "iat", "exp", "iss", "aud"}
        return cls(
            subject=str(payload["sub"]),
            token_id=str(payload["jti"]),
            token_type=TokenType(payload["typ"]),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
            issuer=payload.get("iss"),
            audience=payload.get("aud"),
            extra={k: v for k, v in payload.items() if k not in known},
        )


# ------------------------------ Config ------------------------------------ #

SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


@dataclass(frozen=True, slots=True)
class ResolvedJwtConfig:
    """
    Effective token configuration, resolved once at construction.

    :param access_ttl: Access token lifetime.
    :type access_ttl: timedelta
    :param refresh_ttl: Refresh token lifetime (also the record lifetime).
    :type refresh_ttl: timedelta
    """

    access_secret: str = field(repr=False)
    refresh_secret: str = field(repr=False)
    access_ttl: timedelta
    refresh_ttl: timedelta
    issuer: str | None
    audience: str | None
    algorithm: str
    leeway: int


@dataclass(frozen=True, slots=True)
class JwtConfig:
    """
    Token emission configuration as supplied by the caller.

    :param access_secret: HMAC secret for access tokens (required).
    :param refresh_secret: HMAC secret for refresh tokens (required).
    :param access_expires_in: ``"15m"``-style duration, seconds or timedelta.
    :param refresh_expires_in: ``"7d"``-style duration, seconds or timedelta.
    :param issuer: Optional ``iss``, required-match on verify when set.
    :param audience: Optional ``aud``, required-match on verify when set.
    :param algorithm: HMAC algorithm name.
    :param leeway: Allowed clock skew in seconds when checking ``exp``.
    :param strict_durations: Fail on unparseable durations instead of falling back.
    """

    access_secret: str = field(repr=False)
    refresh_secret: str = field(repr=False)
    access_expires_in: Duration = "15m"
    refresh_expires_in: Duration = "7d"
    issuer: str | None = None
    audience: str | None = None
    algorithm: str = "HS256"
    leeway: int = 0
    strict_durations: bool = False

    def resolve(self) -> ResolvedJwtConfig:
        """
        Validate and resolve into a :class:`ResolvedJwtConfig`.

        :raises ConfigurationError: On missing secrets, unsupported algorithm,
            negative leeway, or (strict mode) an unparseable duration.
        """
        if not self.access_secret or not self.refresh_secret:
            raise ConfigurationError("Both access_secret and refresh_secret are required.")
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported signing algorithm: {self.algorithm!r}")
        if self.leeway < 0:
            raise ConfigurationError("leeway must be >= 0")

        return ResolvedJwtConfig(
            access_secret=self.access_secret,
            refresh_secret=self.refresh_secret,
            access_ttl=self._ttl("access_expires_in", DEFAULT_ACCESS_TTL),
            refresh_ttl=self._ttl("refresh_expires_in", DEFAULT_REFRESH_TTL),
            issuer=self.issuer or None,
            audience=self.audience or None,
            algorithm=self.algorithm,
            leeway=self.leeway,
        )

    def _ttl(self, name: str, default: timedelta) -> timedelta:
        value = getattr(self, name)
        if duration_to_seconds(value) is None:
            if self.strict_durations:
                raise ConfigurationError(f"Unparseable duration for {name}: {value!r}")
            log.warning(
                "Unparseable duration for %s (%r); falling back to %s", name, value, default
            )
        return parse_duration(value, default)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> JwtConfig:
        """
        Build a config from ``JWT_*`` keys (a Flask ``app.config`` or the dict
        returned by :func:`tokenguard.core.config.config_as_mapping`).
        """
        defaults = cls(access_secret="", refresh_secret="")

        def _get(key: str, default: Any) -> Any:
            value = mapping.get(key)
            return default if value in (None, "") else value

        return cls(
            access_secret=mapping.get("JWT_ACCESS_SECRET") or "",
            refresh_secret=mapping.get("JWT_REFRESH_SECRET") or "",
            access_expires_in=_get("JWT_ACCESS_EXPIRES_IN", defaults.access_expires_in),
            refresh_expires_in=_get("JWT_REFRESH_EXPIRES_IN", defaults.refresh_expires_in),
            issuer=_get("JWT_ISSUER", None),
            audience=_get("JWT_AUDIENCE", None),
            algorithm=_get("JWT_ALGORITHM", defaults.algorithm),
            leeway=int(_get("JWT_LEEWAY", defaults.leeway)),
            strict_durations=parse_flag(_get("JWT_STRICT_DURATIONS", defaults.strict_durations)),
        )
