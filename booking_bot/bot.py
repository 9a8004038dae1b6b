"""
Process-wide wiring of storage, booking engine, notifier and controller.

Both the HTTP app and the console runner build exactly one ``BookingBot``
and drive every conversation through it.

Usage:
    bot = BookingBot()
    await bot.start()
    reply = await bot.handle_message("whatsapp:+15550100", "hi")
    await bot.close()
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import text

from booking_bot.config import AppConfig, settings
from booking_bot.conversation.controller import DialogueController
from booking_bot.conversation.session_store import SessionStore
from booking_bot.schemas.conversation_schema import TurnReply
from booking_bot.storage import AppointmentStore, Database, SessionRepository
from booking_bot.tools.booking import BookingEngine
from booking_bot.tools.notify import AdminNotifier

logger = logging.getLogger(__name__)


class BookingBot:
    """Owns the shared components for one running process."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        notifier: Optional[AdminNotifier] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or settings
        self.db = Database(self.config.storage)
        self.appointments = AppointmentStore(self.db)
        self.sessions = SessionStore(SessionRepository(self.db), self.config.session)
        self.engine = BookingEngine(self.appointments, self.config.business)
        self.notifier = notifier or AdminNotifier(self.config.notify)
        self.controller = DialogueController(
            self.sessions,
            self.engine,
            self.appointments,
            self.notifier,
            config=self.config,
            clock=clock,
        )

    async def start(self) -> None:
        await self.db.connect()
        logger.info(
            "Booking bot ready for '%s' (%d workers, %s fields)",
            self.config.business.name,
            len(self.config.business.workers),
            self.config.dialogue.field_variant,
        )

    async def close(self) -> None:
        await self.notifier.aclose()
        await self.db.dispose()

    async def handle_message(self, raw_user: str, message: Optional[str]) -> TurnReply:
        return await self.controller.handle_message(raw_user, message)

    async def ping(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            async with self.db.session() as session:
                await session.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database health check failed")
            return False
        return True
