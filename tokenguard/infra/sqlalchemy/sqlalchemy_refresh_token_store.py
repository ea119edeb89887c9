"""SQLAlchemy-backed refresh-token store."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

from sqlalchemy import CursorResult, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tokenguard.models import Base
from tokenguard.models.refresh_token import RefreshToken
from tokenguard.services._shared.ports import RefreshTokenRecord, RefreshTokenStore


def _ensure_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        user_id=row.user_id,
        token_id=row.token_id,
        revoked=bool(row.revoked),
        expires_at=_ensure_utc(row.expires_at),
    )


@dataclass(slots=True)
class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Refresh-token store over a relational database.

    Every call runs in its own transaction (``sessionmaker.begin()``), so a
    completed ``save`` is committed before ``find`` can be issued. Revocation
    is a conditional ``UPDATE ... WHERE revoked = false``; the database row
    lock makes it a compare-and-set.

    :param session_factory: Factory producing sessions bound to the database.
    """

    session_factory: sessionmaker[Session]

    @classmethod
    def from_engine(
        cls, engine: Engine, *, create_tables: bool = False
    ) -> SQLAlchemyRefreshTokenStore:
        """
        Build a store for ``engine``.

        :param create_tables: Emit ``CREATE TABLE`` for the token tables first.
        """
        if create_tables:
            Base.metadata.create_all(engine)
        return cls(session_factory=sessionmaker(bind=engine, expire_on_commit=False))

    # -------------------- API ------------------------

    def save(self, record: RefreshTokenRecord) -> None:
        with self.session_factory.begin() as session:
            session.add(
                RefreshToken(
                    token_id=record.token_id,
                    user_id=record.user_id,
                    revoked=record.revoked,
                    expires_at=_ensure_utc(record.expires_at),
                )
            )

    def find(self, token_id: str) -> RefreshTokenRecord | None:
        with self.session_factory() as session:
            row = session.get(RefreshToken, token_id)
            return _to_record(row) if row is not None else None

    def revoke(self, token_id: str) -> bool:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_id == token_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        with self.session_factory.begin() as session:
            result = cast(CursorResult, session.execute(stmt))
            return result.rowcount == 1

    def revoke_all_by_user(self, user_id: str) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
        )
        with self.session_factory.begin() as session:
            result = cast(CursorResult, session.execute(stmt))
            return int(result.rowcount)

    def list_by_user(self, user_id: str) -> Iterable[RefreshTokenRecord]:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.token_id)
        )
        with self.session_factory() as session:
            return [_to_record(row) for row in session.execute(stmt).scalars()]
