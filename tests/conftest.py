"""Global pytest fixtures for the token service tests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from tokenguard import InMemoryRefreshTokenStore, JwtConfig, TokenManager

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"


@pytest.fixture()
def config() -> JwtConfig:
    """Minimal valid configuration with distinct access/refresh secrets."""

    return JwtConfig(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


@pytest.fixture()
def store() -> InMemoryRefreshTokenStore:
    """Fresh in-memory refresh-token store."""

    return InMemoryRefreshTokenStore()


@pytest.fixture()
def spy_store(store: InMemoryRefreshTokenStore) -> MagicMock:
    """Spy that records every store call while delegating to the real store.

    Notes
    -----
    ``MagicMock(wraps=...)`` forwards calls and return values, so assertions
    like ``assert_not_called`` reflect what the manager really did.
    """

    return MagicMock(wraps=store)


@pytest.fixture()
def manager(config: JwtConfig, store: InMemoryRefreshTokenStore) -> TokenManager:
    """Token manager wired to the in-memory store."""

    return TokenManager(config, store)


@pytest.fixture()
def spied_manager(config: JwtConfig, spy_store: MagicMock) -> TokenManager:
    """Token manager whose store calls can be asserted."""

    return TokenManager(config, spy_store)


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2024-01-01"):
    ...         ...
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2024-01-01")

    return _factory


@pytest.fixture(autouse=True)
def _reset_token_logging():
    """Drop the JSON handler a test installed on the ``tokenguard`` logger."""

    yield
    from tokenguard.core.logger import LOGGER_NAME, TokenLogHandler

    logger = logging.getLogger(LOGGER_NAME)
    for handler in [h for h in logger.handlers if isinstance(h, TokenLogHandler)]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
