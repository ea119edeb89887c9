from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Persisted state of one minted refresh token.

    :ivar user_id: Owner user id (the token subject).
    :ivar token_id: Refresh token identifier (``jti``), primary key.
    :ivar revoked: Whether the token was consumed by rotation or swept.
    :ivar expires_at: Absolute expiration (UTC).
    """

    user_id: str
    token_id: str
    revoked: bool
    expires_at: datetime


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh-token records.

    ``revoke`` and ``revoke_all_by_user`` MUST be idempotent, and a completed
    ``save`` MUST be visible to a later ``find`` from the same caller.
    """

    def save(self, record: RefreshTokenRecord) -> None:
        """Persist a brand-new active record."""

    def find(self, token_id: str) -> RefreshTokenRecord | None:
        """Point lookup by token id."""

    def revoke(self, token_id: str) -> bool:
        """
        Mark a single record revoked.

        :returns: ``True`` only for the call that moved the record from
            active to revoked; ``False`` if absent or already revoked.
        """

    def revoke_all_by_user(self, user_id: str) -> int:
        """
        Revoke every record of the given user.

        :returns: Number of records newly revoked.
        """

    def list_by_user(self, user_id: str) -> Iterable[RefreshTokenRecord]:
        """List the user's known records, sorted by token id."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh-token store.

    .. note::
       Uses a threading lock so ``revoke`` behaves as a compare-and-set when
       shared between threads.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, RefreshTokenRecord] = {}
        self._by_user: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _utc(dt: datetime) -> datetime:
        return dt if dt.tzinfo else dt.replace(tzinfo=UTC)

    def save(self, record: RefreshTokenRecord) -> None:
        with self._lock:
            self._by_id[record.token_id] = replace(
                record, expires_at=self._utc(record.expires_at)
            )
            self._by_user.setdefault(record.user_id, set()).add(record.token_id)

    def find(self, token_id: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_id.get(token_id)

    def revoke(self, token_id: str) -> bool:
        with self._lock:
            current = self._by_id.get(token_id)
            if current is None or current.revoked:
                return False
            self._by_id[token_id] = replace(current, revoked=True)
            return True

    def revoke_all_by_user(self, user_id: str) -> int:
        with self._lock:
            count = 0
            for token_id in self._by_user.get(user_id, set()):
                current = self._by_id.get(token_id)
                if current is not None and not current.revoked:
                    self._by_id[token_id] = replace(current, revoked=True)
                    count += 1
            return count

    def list_by_user(self, user_id: str) -> Iterable[RefreshTokenRecord]:
        with self._lock:
            ids = sorted(self._by_user.get(user_id, set()))
            return [self._by_id[j] for j in ids if j in self._by_id]
