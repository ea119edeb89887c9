"""
Domain-level exceptions raised by the token service layer.

These exceptions are **framework-agnostic** and never import Flask, Redis or
SQLAlchemy. Store-originated errors are not wrapped: they reach the caller
unmodified so a failed revocation can never be masked.
"""

from __future__ import annotations

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class TokenServiceError(Exception):
    """
    Base class for all token-service errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The delivery layer decides how to present them (401, re-login, ...).
    """

    pass


# --------------------------------------------------------------------------- #
# Specific errors
# --------------------------------------------------------------------------- #


class ConfigurationError(TokenServiceError):
    """
    Raised for caller-programming errors: missing secrets, unsupported
    algorithm, or an operation that needs a refresh-token store without one.

    Not retryable.
    """


class TokenError(TokenServiceError):
    """
    Raised when a presented token is rejected.

    The message stays generic ("Invalid token") whatever the cause (bad
    signature, malformed, expired, issuer/audience mismatch).
    """

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class InvalidTokenTypeError(TokenError):
    """Raised when a correctly signed token carries the wrong ``typ`` claim."""

    def __init__(self, message: str = "Invalid token type") -> None:
        super().__init__(message)


class TokenSerializationError(TokenServiceError):
    """Raised when the claim set cannot be serialized for signing."""


class ReuseDetectedError(TokenServiceError):
    """
    Raised when an already-rotated or unknown refresh token is presented.

    Every refresh token of :attr:`user_id` has been revoked by the time this
    is raised. Callers must force re-authentication, never retry.

    .. note::
       Deliberately not a :class:`TokenError` so that a generic
       ``except TokenError`` handler cannot swallow it.

    :param user_id: Owner whose refresh tokens were swept.
    """

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__("Refresh token reuse detected")
        self.user_id = user_id
