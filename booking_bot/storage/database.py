"""
Embedded SQLite database shared by appointments and dialogue sessions.

Uses the SQLAlchemy asyncio extension over aiosqlite so that no query
blocks the event loop serving webhook turns.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from booking_bot.config import StorageConfig, settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the async engine and hands out ORM sessions."""

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        self.config = config or settings.storage
        self.engine: AsyncEngine = create_async_engine(
            self.config.database_url, echo=self.config.echo_sql
        )
        self._sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    def session(self) -> AsyncSession:
        return self._sessions()

    def _ensure_directory(self) -> None:
        url = make_url(self.config.database_url)
        if not url.get_backend_name().startswith("sqlite"):
            return
        if not url.database or url.database == ":memory:":
            return
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Create the data directory and any missing tables."""
        # Register the mapped tables on Base.metadata before create_all.
        from booking_bot.storage import models  # noqa: F401

        self._ensure_directory()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database ready at %s", self.engine.url.render_as_string(hide_password=True))

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
