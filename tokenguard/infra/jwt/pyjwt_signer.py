# tokenguard/infra/jwt/pyjwt_signer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

import jwt

from tokenguard.services._shared.errors import TokenError, TokenSerializationError
from tokenguard.services._shared.ports import TokenSigner

log = logging.getLogger(__name__)

# Claims every verified token must carry.
REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti"]


@dataclass(slots=True)
class PyJWTSigner(TokenSigner):
    """
    Adapter for PyJWT (HMAC algorithms).

    :param algorithm: JWS algorithm used to sign and the only one accepted on verify.
    :param leeway: Clock skew, in seconds, tolerated when checking ``exp``.
    """

    algorithm: str = "HS256"
    leeway: int = 0

    def sign(
        self,
        claims: dict[str, Any],
        *,
        secret: str,
        expires_in: timedelta,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> str:
        now = datetime.now(UTC)
        payload = dict(claims)
        payload["iat"] = now
        try:
            payload["exp"] = now + expires_in
        except OverflowError as exc:
            raise TokenSerializationError("Token lifetime is out of range.") from exc
        if issuer is not None:
            payload["iss"] = issuer
        if audience is not None:
            payload["aud"] = audience

        try:
            return jwt.encode(payload, secret, algorithm=self.algorithm)
        except (TypeError, ValueError) as exc:
            # json.dumps rejects non-serializable claim values
            raise TokenSerializationError("Token claims are not serializable.") from exc

    def verify(
        self,
        token: str,
        *,
        secret: str,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=issuer,
                audience=audience,
                leeway=self.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as exc:
            # Cause stays internal; callers only see "Invalid token".
            log.debug("Token verification failed: %s", type(exc).__name__)
            raise TokenError() from exc
        return cast(dict[str, Any], payload)
