"""Token-service settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

from tokenguard.services._shared.flags import parse_flag

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "TOKENGUARD_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value is one of
        :data:`tokenguard.services._shared.flags.TRUTHY_VALUES`
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return parse_flag(val)


def env_int(name: str, default: int = 0) -> int:
    """Parse an integer from an environment variable, ``default`` when unset or blank."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    JWT_ACCESS_SECRET: str
        HMAC secret for access tokens. Empty means "not configured" and makes
        :class:`~tokenguard.services.tokens.TokenManager` refuse to start.
    JWT_REFRESH_SECRET: str
        HMAC secret for refresh tokens; must differ from the access secret in
        production.
    JWT_ACCESS_EXPIRES_IN: str
        Access token lifetime (``"15m"``).
    JWT_REFRESH_EXPIRES_IN: str
        Refresh token lifetime (``"7d"``).
    JWT_ISSUER, JWT_AUDIENCE: str | None
        Optional ``iss``/``aud`` claims, required-match on verify when set.
    JWT_ALGORITHM: str
        HMAC algorithm (``HS256`` by default).
    JWT_LEEWAY: int
        Clock skew tolerated on ``exp``, in seconds.
    JWT_STRICT_DURATIONS: bool
        Reject unparseable durations instead of falling back to defaults.
    REDIS_URL: str | None
        Selects the Redis refresh-token store when set.
    TOKEN_STORE_DATABASE_URL: str | None
        Selects the SQLAlchemy refresh-token store when set (and no Redis).
    TOKEN_STORE_IN_MEMORY: bool
        Fall back to the in-memory store when no other store is configured.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are sourced from environment variables, enabling configuration
    without code changes.
    """

    # Secrets
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")

    # Lifetimes & claims
    JWT_ACCESS_EXPIRES_IN = os.getenv("JWT_ACCESS_EXPIRES_IN", "15m")
    JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "7d")
    JWT_ISSUER = os.getenv("JWT_ISSUER") or None
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_LEEWAY = env_int("JWT_LEEWAY", 0)
    JWT_STRICT_DURATIONS = env_bool("JWT_STRICT_DURATIONS", False)

    # Stores
    REDIS_URL = os.getenv("REDIS_URL") or None
    TOKEN_STORE_DATABASE_URL = os.getenv("TOKEN_STORE_DATABASE_URL") or None
    TOKEN_STORE_IN_MEMORY = env_bool("TOKEN_STORE_IN_MEMORY", False)

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Keeps refresh tokens in memory unless a real store is configured.
    """

    TOKEN_STORE_IN_MEMORY = env_bool("TOKEN_STORE_IN_MEMORY", True)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses fixed throwaway secrets so tests never depend on the environment.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    """

    JWT_ACCESS_SECRET = "testing-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "testing-refresh-secret-0123456789abcdef"
    REDIS_URL = None
    TOKEN_STORE_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Fails closed on unparseable durations and never falls back to memory.
    """

    JWT_STRICT_DURATIONS = env_bool("JWT_STRICT_DURATIONS", True)
    TOKEN_STORE_IN_MEMORY = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``TOKENGUARD_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object` or
        :func:`config_as_mapping`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``TOKENGUARD_ENV`` is unset
    or unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def config_as_mapping(config: type[BaseConfig] | object) -> dict[str, Any]:
    """Collect the upper-case attributes of a config class, like ``Config.from_object``."""
    return {key: getattr(config, key) for key in dir(config) if key.isupper()}
