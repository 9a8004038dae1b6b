"""Per-key session rows: one transaction touches exactly one customer's record."""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from booking_bot.schemas.session_schema import DialogueStep, Session
from booking_bot.storage.database import Database
from booking_bot.storage.models import SessionRow, naive_utc
from booking_bot.utils import as_utc

logger = logging.getLogger(__name__)

SessionMutation = Callable[[SessionRow], None]


def _to_session(row: SessionRow) -> Session:
    return Session(
        user_key=row.user_key,
        step=DialogueStep(row.step),
        fields=dict(row.data or {}),
        created_at=as_utc(row.created_at),
        last_activity=as_utc(row.last_activity),
    )


class SessionRepository:
    """Async storage for dialogue sessions keyed by normalized user key."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, user_key: str) -> Optional[Session]:
        async with self._db.session() as session:
            row = await session.get(SessionRow, user_key)
            return _to_session(row) if row is not None else None

    async def apply(
        self,
        user_key: str,
        mutate: Optional[SessionMutation] = None,
        now: Optional[datetime] = None,
    ) -> Session:
        """Fetch-or-create the row, run ``mutate`` on it and commit, all in one transaction.

        A concurrent first message from the same customer can win the insert
        race; in that case the existing row is re-read and mutated instead.
        """
        stamp = naive_utc(now)
        for attempt in range(2):
            async with self._db.session() as session:
                row = await session.get(SessionRow, user_key)
                if row is None:
                    row = SessionRow(
                        user_key=user_key,
                        step=DialogueStep.START.value,
                        data={},
                        created_at=stamp,
                        last_activity=stamp,
                    )
                    session.add(row)
                if mutate is not None:
                    mutate(row)
                    row.last_activity = stamp
                try:
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    if attempt:
                        raise
                    logger.debug("Session %s created concurrently, retrying", user_key)
                    continue
                return _to_session(row)
        raise RuntimeError("unreachable")

    async def delete(self, user_key: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(delete(SessionRow).where(SessionRow.user_key == user_key))
            await session.commit()
            return result.rowcount > 0

    async def all(self) -> list[Session]:
        async with self._db.session() as session:
            result = await session.execute(select(SessionRow).order_by(SessionRow.created_at))
            return [_to_session(row) for row in result.scalars()]

    async def delete_idle_since(self, cutoff: datetime) -> int:
        """Remove every session whose last activity is strictly before ``cutoff``."""
        async with self._db.session() as session:
            result = await session.execute(
                delete(SessionRow).where(SessionRow.last_activity < naive_utc(cutoff))
            )
            await session.commit()
            return result.rowcount
