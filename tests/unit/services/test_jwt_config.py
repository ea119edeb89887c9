# tests/unit/services/test_jwt_config.py
from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from tokenguard import ConfigurationError, JwtConfig, ResolvedJwtConfig, TokenManager


def test_defaults_are_resolved_once(config):
    mgr = TokenManager(config)

    assert isinstance(mgr.config, ResolvedJwtConfig)
    assert mgr.config.access_ttl == timedelta(minutes=15)
    assert mgr.config.refresh_ttl == timedelta(days=7)
    assert mgr.config.issuer is None
    assert mgr.config.audience is None
    assert mgr.config.algorithm == "HS256"
    assert mgr.config.leeway == 0


@pytest.mark.parametrize(
    ("access", "refresh"),
    [("", "r"), ("a", ""), ("", "")],
)
def test_missing_secrets_raise(access, refresh):
    with pytest.raises(ConfigurationError):
        TokenManager(JwtConfig(access_secret=access, refresh_secret=refresh))


def test_unsupported_algorithm_raises(config):
    with pytest.raises(ConfigurationError):
        JwtConfig(
            access_secret=config.access_secret,
            refresh_secret=config.refresh_secret,
            algorithm="none",
        ).resolve()


def test_negative_leeway_raises(config):
    with pytest.raises(ConfigurationError):
        JwtConfig(
            access_secret=config.access_secret, refresh_secret=config.refresh_secret, leeway=-1
        ).resolve()


def test_unparseable_duration_falls_back_with_warning(config, caplog):
    cfg = JwtConfig(
        access_secret=config.access_secret,
        refresh_secret=config.refresh_secret,
        access_expires_in="soon",
        refresh_expires_in="later",
    )

    with caplog.at_level(logging.WARNING):
        resolved = cfg.resolve()

    assert resolved.access_ttl == timedelta(minutes=15)
    assert resolved.refresh_ttl == timedelta(days=7)
    assert "refresh_expires_in" in caplog.text


def test_strict_durations_fail_closed(config):
    cfg = JwtConfig(
        access_secret=config.access_secret,
        refresh_secret=config.refresh_secret,
        refresh_expires_in="later",
        strict_durations=True,
    )
    with pytest.raises(ConfigurationError, match="refresh_expires_in"):
        TokenManager(cfg)


def test_numeric_and_timedelta_durations(config):
    resolved = JwtConfig(
        access_secret=config.access_secret,
        refresh_secret=config.refresh_secret,
        access_expires_in=60,
        refresh_expires_in=timedelta(hours=3),
    ).resolve()

    assert resolved.access_ttl == timedelta(seconds=60)
    assert resolved.refresh_ttl == timedelta(hours=3)


def test_secrets_hidden_from_repr(config):
    assert config.access_secret not in repr(config)
    assert config.refresh_secret not in repr(config.resolve())


def test_blank_issuer_means_unset(config):
    resolved = JwtConfig(
        access_secret=config.access_secret,
        refresh_secret=config.refresh_secret,
        issuer="",
        audience="",
    ).resolve()
    assert resolved.issuer is None
    assert resolved.audience is None


def test_from_mapping():
    cfg = JwtConfig.from_mapping(
        {
            "JWT_ACCESS_SECRET": "a" * 32,
            "JWT_REFRESH_SECRET": "r" * 32,
            "JWT_ACCESS_EXPIRES_IN": "5m",
            "JWT_REFRESH_EXPIRES_IN": "",
            "JWT_ISSUER": "tokenguard",
            "JWT_LEEWAY": "10",
        }
    )

    assert cfg.access_expires_in == "5m"
    assert cfg.refresh_expires_in == "7d"
    assert cfg.issuer == "tokenguard"
    assert cfg.audience is None
    assert cfg.leeway == 10
    assert cfg.strict_durations is False


def test_resolved_config_is_accepted_directly(config):
    resolved = config.resolve()
    assert TokenManager(resolved).config is resolved


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("false", False), ("0", False), ("true", True), (True, True)],
)
def test_from_mapping_strict_flag(raw, expected):
    cfg = JwtConfig.from_mapping(
        {"JWT_ACCESS_SECRET": "a", "JWT_REFRESH_SECRET": "r", "JWT_STRICT_DURATIONS": raw}
    )
    assert cfg.strict_durations is expected


@pytest.mark.parametrize("oversized", ["4000000d", "1000000000d", 10**12])
def test_oversized_duration_is_a_configuration_error(config, oversized):
    cfg = JwtConfig(
        access_secret=config.access_secret,
        refresh_secret=config.refresh_secret,
        refresh_expires_in=oversized,
        strict_durations=True,
    )
    with pytest.raises(ConfigurationError, match="refresh_expires_in"):
        cfg.resolve()


@pytest.mark.parametrize("oversized", ["4000000d", "1000000000d"])
def test_oversized_duration_falls_back_and_still_issues(config, store, oversized):
    mgr = TokenManager(
        JwtConfig(
            access_secret=config.access_secret,
            refresh_secret=config.refresh_secret,
            access_expires_in=oversized,
            refresh_expires_in=oversized,
        ),
        store,
    )

    assert mgr.config.access_ttl == timedelta(minutes=15)
    assert mgr.config.refresh_ttl == timedelta(days=7)
    pair = mgr.issue_token_pair("user-1")
    assert mgr.verify_refresh_token(pair.refresh_token).subject == "user-1"
