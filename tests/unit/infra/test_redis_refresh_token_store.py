# tests/unit/infra/test_redis_refresh_token_store.py
"""
Unit tests for RedisRefreshTokenStore using fakeredis.

These tests exercise the main flows:
- save + find
- revoke (compare-and-set semantics)
- revoke_all_by_user (sweep + stale index cleanup)
- list_by_user

They use fakeredis.FakeRedis so they run entirely in-memory.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from tokenguard import JwtConfig, RefreshTokenRecord, ReuseDetectedError, TokenManager
from tokenguard.infra.redis.redis_refresh_token_store import (
    DEFAULT_TTL_GRACE,
    RedisRefreshTokenStore,
)


def _now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


def _record(token_id: str, user_id: str = "user-1", seconds: int = 300) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        user_id=user_id,
        token_id=token_id,
        revoked=False,
        expires_at=_now() + timedelta(seconds=seconds),
    )


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def redis_store(fake_redis):
    """Provide a RedisRefreshTokenStore backed by FakeRedis."""
    return RedisRefreshTokenStore(r=fake_redis)


def test_save_and_find(redis_store, fake_redis):
    rec = _record("jti-1", seconds=120)
    redis_store.save(rec)

    found = redis_store.find("jti-1")
    assert found is not None
    assert found.token_id == "jti-1"
    assert found.user_id == "user-1"
    assert found.revoked is False
    assert found.expires_at == rec.expires_at.replace(microsecond=0)

    # hash expires with the token plus the grace period
    assert 120 < fake_redis.ttl("rt:jti-1") <= 120 + DEFAULT_TTL_GRACE
    assert fake_redis.sismember("rt:u:user-1", "jti-1")


def test_find_missing_returns_none(redis_store):
    assert redis_store.find("no-such") is None


def test_find_with_decoded_responses():
    store = RedisRefreshTokenStore(r=fakeredis.FakeRedis(decode_responses=True))
    store.save(_record("jti-1"))
    found = store.find("jti-1")
    assert found is not None and found.user_id == "user-1"


def test_revoke_is_compare_and_set(redis_store):
    redis_store.save(_record("jti-2"))

    assert redis_store.revoke("jti-2") is True
    assert redis_store.revoke("jti-2") is False
    assert redis_store.find("jti-2").revoked is True


def test_revoke_missing_is_noop(redis_store, fake_redis):
    assert redis_store.revoke("ghost") is False
    # no stub hash is created for unknown ids
    assert fake_redis.exists("rt:ghost") == 0


def test_revoke_all_by_user(redis_store):
    for i in range(3):
        redis_store.save(_record(f"a-{i}", user_id="u1"))
    redis_store.save(_record("b-0", user_id="u2"))
    redis_store.revoke("a-0")

    assert redis_store.revoke_all_by_user("u1") == 2
    assert redis_store.revoke_all_by_user("u1") == 0
    assert all(r.revoked for r in redis_store.list_by_user("u1"))
    assert redis_store.find("b-0").revoked is False


def test_revoke_all_prunes_expired_members(redis_store, fake_redis):
    redis_store.save(_record("live", user_id="u3"))
    redis_store.save(_record("gone", user_id="u3"))
    fake_redis.delete("rt:gone")  # simulate TTL expiry

    assert redis_store.revoke_all_by_user("u3") == 1
    assert not fake_redis.sismember("rt:u:u3", "gone")
    assert fake_redis.exists("rt:gone") == 0


def test_revoke_all_unknown_user(redis_store):
    assert redis_store.revoke_all_by_user("nobody") == 0


def test_list_by_user_sorted(redis_store):
    for j in ("c", "a", "b"):
        redis_store.save(_record(j, user_id="u4"))

    assert [r.token_id for r in redis_store.list_by_user("u4")] == ["a", "b", "c"]


def test_rotation_and_reuse_with_redis(redis_store):
    mgr = TokenManager(
        JwtConfig(
            access_secret="redis-access-secret-0123456789abcdef",
            refresh_secret="redis-refresh-secret-0123456789abcdef",
        ),
        redis_store,
    )
    r1 = mgr.issue_refresh_token("user-7")
    r2 = mgr.rotate_refresh_token(r1.token)

    assert redis_store.find(r1.token_id).revoked is True
    assert redis_store.find(r2.token_id).revoked is False

    with pytest.raises(ReuseDetectedError):
        mgr.rotate_refresh_token(r1.token)
    assert redis_store.find(r2.token_id).revoked is True


def test_custom_ttl_grace(fake_redis):
    store = RedisRefreshTokenStore(r=fake_redis, ttl_grace=30)
    store.save(_record("jti-g", seconds=120))

    assert 120 < fake_redis.ttl("rt:jti-g") <= 150


def test_rotation_within_leeway_after_expiry(fake_redis):
    store = RedisRefreshTokenStore(r=fake_redis, ttl_grace=30)
    mgr = TokenManager(
        JwtConfig(
            access_secret="redis-access-secret-0123456789abcdef",
            refresh_secret="redis-refresh-secret-0123456789abcdef",
            refresh_expires_in="1s",
            leeway=30,
        ),
        store,
    )
    r1 = mgr.issue_refresh_token("user-8")
    r1_sibling = mgr.issue_refresh_token("user-8")

    time.sleep(2.2)  # past exp, inside the leeway

    r2 = mgr.rotate_refresh_token(r1.token)
    assert store.find(r1.token_id).revoked is True
    assert store.find(r2.token_id).revoked is False
    # no reuse sweep ran
    assert store.find(r1_sibling.token_id).revoked is False


def test_user_index_expires_with_longest_lived_member(redis_store, fake_redis):
    redis_store.save(_record("long", user_id="u5", seconds=600))
    redis_store.save(_record("short", user_id="u5", seconds=60))

    ttl = fake_redis.ttl("rt:u:u5")
    assert 600 < ttl <= 600 + DEFAULT_TTL_GRACE

    redis_store.save(_record("longer", user_id="u5", seconds=1200))
    assert fake_redis.ttl("rt:u:u5") > 1200


def test_user_index_never_persistent(redis_store, fake_redis):
    redis_store.save(_record("only", user_id="u6", seconds=60))
    assert fake_redis.ttl("rt:u:u6") > 0
