"""
Dialogue session store.

Maps a customer's channel address to their in-progress conversation. Every
public method normalizes the address first, so "whatsapp:+1-555-0100" and
"5550100" always resolve to the same session. Every mutation is written
through to the database before the call returns; nothing dirty is held in
memory between turns.

Usage:
    store = SessionStore(SessionRepository(db))
    session = await store.get_session("whatsapp:+15550100")
    await store.update_session("whatsapp:+15550100", "name", "Jordan")
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from booking_bot.config import SessionConfig, settings
from booking_bot.schemas.session_schema import DialogueStep, Session
from booking_bot.storage.models import SessionRow
from booking_bot.storage.sessions import SessionRepository
from booking_bot.utils import normalize_user_key, utcnow

logger = logging.getLogger(__name__)

STEP_FIELD = "step"


def _set_value(row: SessionRow, name: str, value: Any) -> None:
    if name == STEP_FIELD:
        # Raises ValueError for anything that is not a defined step.
        row.step = DialogueStep(value).value
        return
    data = dict(row.data or {})
    data[name] = str(value)
    row.data = data


class SessionStore:
    """Normalized, write-through access to dialogue sessions."""

    def __init__(
        self, repository: SessionRepository, config: Optional[SessionConfig] = None
    ) -> None:
        self._repo = repository
        self.config = config or settings.session

    def normalize(self, user: str) -> str:
        return normalize_user_key(user, self.config.default_country_code)

    async def get_session(self, user: str) -> Session:
        """Return the user's session, creating one at the start step if absent."""
        return await self._repo.apply(self.normalize(user))

    async def update_session(self, user: str, field: str, value: Any) -> Session:
        """Set one field (or the step) and refresh last activity. ``None`` is a no-op."""
        if value is None:
            return await self.get_session(user)
        return await self._repo.apply(
            self.normalize(user), lambda row: _set_value(row, field, value)
        )

    async def update_fields(self, user: str, values: Mapping[str, Any]) -> Session:
        """Set several fields in a single write. ``None`` values are skipped."""
        pending = {k: v for k, v in values.items() if v is not None}

        def mutate(row: SessionRow) -> None:
            for name, value in pending.items():
                _set_value(row, name, value)

        return await self._repo.apply(self.normalize(user), mutate)

    async def reset_session(self, user: str, step: DialogueStep) -> Session:
        """Drop every collected field and park the session at ``step``."""

        def mutate(row: SessionRow) -> None:
            row.data = {}
            row.step = DialogueStep(step).value

        return await self._repo.apply(self.normalize(user), mutate)

    async def clear_session(self, user: str) -> None:
        key = self.normalize(user)
        if await self._repo.delete(key):
            logger.debug("Session cleared for %s", key)

    async def list_sessions(self) -> dict[str, Session]:
        return {s.user_key: s for s in await self._repo.all()}

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Delete sessions idle for longer than the configured TTL."""
        cutoff = (now or utcnow()) - timedelta(hours=self.config.ttl_hours)
        removed = await self._repo.delete_idle_since(cutoff)
        if removed:
            logger.info("Cleaned up %d expired session(s)", removed)
        return removed

    async def run_sweeper(self, interval_sec: Optional[float] = None) -> None:
        """Sweep forever on a fixed interval until cancelled."""
        interval = interval_sec or self.config.sweep_interval_sec
        logger.info("Session sweeper started (every %.0fs)", interval)
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep_expired()
            except Exception:
                logger.exception("Session sweep failed; will retry next interval")
