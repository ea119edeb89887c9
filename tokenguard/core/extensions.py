"""Flask integration: build the token manager and its store from ``app.config``."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import create_engine

from tokenguard.core.logger import init_app as init_logging
from tokenguard.infra.redis.redis_refresh_token_store import (
    DEFAULT_TTL_GRACE,
    RedisRefreshTokenStore,
)
from tokenguard.infra.sqlalchemy.sqlalchemy_refresh_token_store import (
    SQLAlchemyRefreshTokenStore,
)
from tokenguard.services._shared.ports import InMemoryRefreshTokenStore, RefreshTokenStore
from tokenguard.services.tokens import JwtConfig, TokenManager

EXTENSION_KEY = "tokenguard"

log = logging.getLogger(__name__)


def build_store(app: Flask) -> RefreshTokenStore | None:
    """Select the refresh-token store from ``app.config``.

    Priority: ``REDIS_URL`` > ``TOKEN_STORE_DATABASE_URL`` >
    ``TOKEN_STORE_IN_MEMORY`` > no store.

    Raises
    ------
    RuntimeError
        If Redis is configured but unreachable.
    """
    redis_url = app.config.get("REDIS_URL")
    if redis_url:
        client = redis.Redis.from_url(redis_url)
        try:
            client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = client
        leeway = int(app.config.get("JWT_LEEWAY") or 0)
        return RedisRefreshTokenStore(r=client, ttl_grace=max(DEFAULT_TTL_GRACE, leeway))

    db_url = app.config.get("TOKEN_STORE_DATABASE_URL")
    if db_url:
        engine = create_engine(db_url)
        return SQLAlchemyRefreshTokenStore.from_engine(engine, create_tables=True)

    if app.config.get("TOKEN_STORE_IN_MEMORY"):
        return InMemoryRefreshTokenStore()

    log.warning("No refresh-token store configured; rotation is disabled")
    return None


def init_app(app: Flask) -> TokenManager:
    """Create the :class:`TokenManager` for ``app`` and register it.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``JWT_*`` settings configure the manager.

    Returns
    -------
    TokenManager
        The manager, also stored under ``app.extensions["tokenguard"]``.
    """
    manager = TokenManager(JwtConfig.from_mapping(app.config), build_store(app))
    app.extensions[EXTENSION_KEY] = manager
    init_logging(app)
    return manager


def get_token_manager() -> TokenManager:
    """Return the manager registered on the current Flask app."""
    manager = current_app.extensions.get(EXTENSION_KEY)
    if manager is None:
        raise RuntimeError("Token manager is not initialized. Call init_app() first.")
    return manager
