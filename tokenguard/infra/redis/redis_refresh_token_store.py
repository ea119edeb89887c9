from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Final

import redis  # type: ignore[import-untyped]

from tokenguard.services._shared.ports import RefreshTokenRecord, RefreshTokenStore


# Seconds a record key outlives its token; must cover the verifier's leeway.
DEFAULT_TTL_GRACE: Final[int] = 300


def _s(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh-token store.

    Each record is a hash ``rt:<token_id>`` expiring ``ttl_grace`` seconds
    after the token; a set ``rt:u:<user_id>`` indexes the user's token ids for
    sweeps and expires with its longest-lived member.

    :param r: A Redis client (already connected, Redis 7+ for ``EXPIRE NX|GT``).
    :param ttl_grace: Extra key lifetime in seconds; keep it ``>=`` the
        verifier's leeway.
    """

    r: redis.Redis
    ttl_grace: int = DEFAULT_TTL_GRACE

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_id: str) -> str:
        return f"rt:{token_id}"

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # naive datetimes are taken as UTC
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    def _members(self, user_id: str) -> list[str]:
        return sorted(_s(m) for m in self.r.smembers(self._ku(user_id)))

    # -------------------- API ------------------------

    def save(self, record: RefreshTokenRecord) -> None:
        key = self._k(record.token_id)
        exp_ts = self._to_ts(record.expires_at)
        ttl = max(1, exp_ts + self.ttl_grace - self._to_ts(datetime.now(UTC)))
        key_u = self._ku(record.user_id)

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            key,
            mapping={
                "user_id": record.user_id,
                "revoked": "1" if record.revoked else "0",
                "expires_at": str(exp_ts),
            },
        )
        pipe.expire(key, ttl)
        pipe.sadd(key_u, record.token_id)
        # index lives as long as its newest member
        pipe.expire(key_u, ttl, nx=True)
        pipe.expire(key_u, ttl, gt=True)
        pipe.execute()

    def find(self, token_id: str) -> RefreshTokenRecord | None:
        raw = self.r.hgetall(self._k(token_id))
        if not raw:
            return None
        # clients may or may not use decode_responses
        h = {_s(k): v for k, v in raw.items()}
        return RefreshTokenRecord(
            user_id=_s(h.get("user_id")),
            token_id=token_id,
            revoked=_s(h.get("revoked"), "0") == "1",
            expires_at=datetime.fromtimestamp(int(_s(h.get("expires_at"), "0")), tz=UTC),
        )

    def revoke(self, token_id: str) -> bool:
        """
        Compare-and-set ``revoked`` from 0 to 1 using WATCH/MULTI/EXEC.

        :returns: ``True`` only if this call performed the transition.
        """
        key = self._k(token_id)

        # Retry loop for optimistic locking in case of concurrent modifications
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    state = p.hget(key, "revoked")
                    if state is None or _s(state) == "1":
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.execute()
                    return True
            except redis.WatchError:
                continue

    def revoke_all_by_user(self, user_id: str) -> int:
        """
        Revoke every live record of ``user_id`` in one optimistic transaction.

        Index members whose hash already expired are pruned.
        """
        key_u = self._ku(user_id)

        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key_u)
                    ids = sorted(_s(m) for m in p.smembers(key_u))
                    if not ids:
                        p.unwatch()
                        return 0
                    keys = [self._k(j) for j in ids]
                    p.watch(*keys)
                    states = [p.hget(k, "revoked") for k in keys]

                    stale = [j for j, st in zip(ids, states, strict=True) if st is None]
                    active = [k for k, st in zip(keys, states, strict=True) if _s(st) == "0"]

                    if not active and not stale:
                        p.unwatch()
                        return 0

                    p.multi()
                    for k in active:
                        p.hset(k, "revoked", "1")
                    if stale:
                        p.srem(key_u, *stale)
                    p.execute()
                    return len(active)
            except redis.WatchError:
                continue

    def list_by_user(self, user_id: str) -> Iterable[RefreshTokenRecord]:
        out: list[RefreshTokenRecord] = []
        for j in self._members(user_id):
            rec = self.find(j)
            if rec:
                out.append(rec)
        return out
