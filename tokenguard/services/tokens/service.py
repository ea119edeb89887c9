# tokenguard/services/tokens/service.py
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, NoReturn

from tokenguard.services._shared.errors import (
    ConfigurationError,
    InvalidTokenTypeError,
    ReuseDetectedError,
)
from tokenguard.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenStore,
)
from tokenguard.services._shared.ports.token_signer import TokenSigner
from tokenguard.services.tokens.claims import build_claims
from tokenguard.services.tokens.dto import (
    ClaimSet,
    IssuedToken,
    JwtConfig,
    ResolvedJwtConfig,
    TokenPair,
    TokenType,
)
from tokenguard.services.tokens.ids import new_token_id

log = logging.getLogger(__name__)


class TokenManager:
    """
    Access/refresh token lifecycle service (issue / verify / rotate).

    Tokens are signed through a pluggable :class:`TokenSigner`; refresh tokens
    are tracked in a :class:`RefreshTokenStore`, which enables rotation with
    reuse detection. Without a store, refresh tokens are still issued but are
    neither trackable nor revocable.
    """

    def __init__(
        self,
        config: JwtConfig | ResolvedJwtConfig,
        store: RefreshTokenStore | None = None,
        *,
        signer: TokenSigner | None = None,
        id_factory: Callable[[], str] = new_token_id,
    ) -> None:
        """
        Initialize the manager with its dependencies.

        :param config: Caller configuration; resolved once here.
        :param store: Refresh-token record store (required for rotation).
        :param signer: JWT adapter; defaults to :class:`PyJWTSigner`.
        :param id_factory: Zero-arg callable returning fresh token ids.
        :raises ConfigurationError: If the configuration is invalid.
        """
        self.config: ResolvedJwtConfig = (
            config if isinstance(config, ResolvedJwtConfig) else config.resolve()
        )
        self.store = store
        if signer is None:
            from tokenguard.infra.jwt.pyjwt_signer import PyJWTSigner

            signer = PyJWTSigner(algorithm=self.config.algorithm, leeway=self.config.leeway)
        self.signer = signer
        self.new_token_id = id_factory

    # ------------------------------------------------------------------ #
    # Access tokens
    # ------------------------------------------------------------------ #

    def issue_access_token(
        self, subject: str, extra_attributes: Mapping[str, Any] | None = None
    ) -> IssuedToken:
        """
        Sign a new access token.

        Reserved claim names in ``extra_attributes`` are dropped before
        merging; the system's ``sub``/``jti``/``typ``/``iat``/``exp`` always win.

        :raises TokenSerializationError: If an attribute is not JSON-serializable.
        """
        token_id = self.new_token_id()
        claims = build_claims(
            subject=str(subject),
            token_id=token_id,
            token_type=TokenType.ACCESS,
            extra=extra_attributes,
        )
        token = self.signer.sign(
            claims,
            secret=self.config.access_secret,
            expires_in=self.config.access_ttl,
            issuer=self.config.issuer,
            audience=self.config.audience,
        )
        return IssuedToken(token=token, token_id=token_id)

    def verify_access_token(self, token: str) -> ClaimSet:
        """
        Verify an access token.

        :raises TokenError: Signature, expiry, format or issuer/audience failure.
        :raises InvalidTokenTypeError: A correctly signed non-access token.
        """
        return self._verify(token, self.config.access_secret, TokenType.ACCESS)

    # ------------------------------------------------------------------ #
    # Refresh tokens
    # ------------------------------------------------------------------ #

    def issue_refresh_token(self, subject: str) -> IssuedToken:
        """
        Sign a new refresh token and register its record (when a store is set).

        Store failures propagate unmodified; the token is then never returned.
        """
        subject = str(subject)
        token_id = self.new_token_id()
        claims = build_claims(subject=subject, token_id=token_id, token_type=TokenType.REFRESH)
        token = self.signer.sign(
            claims,
            secret=self.config.refresh_secret,
            expires_in=self.config.refresh_ttl,
            issuer=self.config.issuer,
            audience=self.config.audience,
        )

        if self.store is not None:
            self.store.save(
                RefreshTokenRecord(
                    user_id=subject,
                    token_id=token_id,
                    revoked=False,
                    expires_at=self.now_utc() + self.config.refresh_ttl,
                )
            )

        return IssuedToken(token=token, token_id=token_id)

    def verify_refresh_token(self, token: str) -> ClaimSet:
        """
        Verify a refresh token (signature and ``typ`` only, no store lookup).

        :raises TokenError: Signature, expiry, format or issuer/audience failure.
        :raises InvalidTokenTypeError: A correctly signed non-refresh token.
        """
        return self._verify(token, self.config.refresh_secret, TokenType.REFRESH)

    def issue_token_pair(
        self, subject: str, extra_attributes: Mapping[str, Any] | None = None
    ) -> TokenPair:
        """Issue an access token and a tracked refresh token for ``subject``."""
        access = self.issue_access_token(subject, extra_attributes)
        refresh = self.issue_refresh_token(subject)
        return TokenPair(access=access, refresh=refresh)

    # ------------------------------------------------------------------ #
    # Rotation with reuse detection
    # ------------------------------------------------------------------ #

    def rotate_refresh_token(self, old_token: str) -> IssuedToken:
        """
        Exchange a valid refresh token for a new one, consuming the old one.

        Security
        --------
        - An unknown or already-revoked ``jti`` is treated as reuse: every
          refresh token of the user is revoked and :class:`ReuseDetectedError`
          is raised.
        - Verification failures (wrong type, wrong secret, expired) are raised
          before the store is touched; expiry is never treated as reuse.
        - The old record is revoked before the new token is issued. If another
          caller revoked it first, this call takes the reuse branch.

        :raises ConfigurationError: If no store is configured.
        :raises TokenError: If ``old_token`` fails verification.
        :raises ReuseDetectedError: On reuse; the sweep has already run.
        """
        _, new = self._rotate(old_token)
        return new

    def refresh_token_pair(
        self, old_refresh_token: str, extra_attributes: Mapping[str, Any] | None = None
    ) -> TokenPair:
        """Rotate ``old_refresh_token`` and issue a fresh access token alongside."""
        subject, refresh = self._rotate(old_refresh_token)
        access = self.issue_access_token(subject, extra_attributes)
        return TokenPair(access=access, refresh=refresh)

    def _rotate(self, old_token: str) -> tuple[str, IssuedToken]:
        store = self._require_store()

        claims = self.verify_refresh_token(old_token)
        record = store.find(claims.token_id)

        if record is None or record.revoked:
            owner = record.user_id if record is not None else claims.subject
            self._contain_reuse(store, owner, claims.token_id)

        if not store.revoke(claims.token_id):
            # lost the race against a concurrent rotation of the same token
            self._contain_reuse(store, record.user_id, claims.token_id)

        new = self.issue_refresh_token(claims.subject)
        log.info(
            "Refresh token rotated",
            extra={"user_id": claims.subject, "token_id": claims.token_id},
        )
        return claims.subject, new

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def revoke_refresh_token(self, token: str) -> bool:
        """
        Revoke a single refresh token (logout).

        :returns: ``True`` if this call revoked an active record.
        """
        store = self._require_store()
        claims = self.verify_refresh_token(token)
        return store.revoke(claims.token_id)

    def revoke_all_for_user(self, user_id: str) -> int:
        """Revoke every refresh token of ``user_id`` (logout everywhere)."""
        store = self._require_store()
        return store.revoke_all_by_user(str(user_id))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _verify(self, token: str, secret: str, expected: TokenType) -> ClaimSet:
        # Type check strictly after signature verification.
        payload = self.signer.verify(
            token,
            secret=secret,
            issuer=self.config.issuer,
            audience=self.config.audience,
        )
        if payload.get("typ") != expected.value:
            log.debug("Token type mismatch: expected %s", expected.value)
            raise InvalidTokenTypeError()
        return ClaimSet.from_payload(payload)

    def _require_store(self) -> RefreshTokenStore:
        if self.store is None:
            raise ConfigurationError("RefreshTokenStore not configured.")
        return self.store

    @staticmethod
    def _contain_reuse(store: RefreshTokenStore, user_id: str, token_id: str) -> NoReturn:
        count = store.revoke_all_by_user(user_id)
        log.warning(
            "Refresh token reuse detected; revoked %s token(s)",
            count,
            extra={"user_id": user_id, "token_id": token_id},
        )
        raise ReuseDetectedError(user_id)

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)
