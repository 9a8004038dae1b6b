"""
FastAPI application factory.

The lifespan opens the database, starts the idle-session sweeper and puts
the shared ``BookingBot`` on ``app.state``; shutdown cancels the sweeper
and closes the engine.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from booking_bot.api.admin import router as admin_router
from booking_bot.api.webhook import router as webhook_router
from booking_bot.bot import BookingBot
from booking_bot.config import AppConfig, settings
from booking_bot.schemas.booking_schema import HealthStatus
from booking_bot.tools.notify import AdminNotifier
from booking_bot.utils import utcnow

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    notifier: Optional[AdminNotifier] = None,
) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bot = BookingBot(config, notifier=notifier)
        await bot.start()
        sweeper = asyncio.create_task(bot.sessions.run_sweeper(), name="session-sweeper")
        app.state.bot = bot
        app.state.started_at = time.monotonic()
        logger.info("HTTP surface ready (version %s)", config.version)

        yield

        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        await bot.close()
        logger.info("HTTP surface stopped")

    app = FastAPI(
        title=f"{config.business.name} booking bot",
        description="WhatsApp booking conversation and appointment admin API",
        version=config.version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "webhook", "description": "Inbound messaging webhook"},
            {"name": "admin", "description": "Appointment and session administration"},
            {"name": "health", "description": "Liveness checks"},
        ],
    )
    app.include_router(webhook_router)
    app.include_router(admin_router)

    @app.get("/healthz", response_model=HealthStatus, tags=["health"])
    async def healthz() -> HealthStatus:
        bot: BookingBot = app.state.bot
        database_ok = await bot.ping()
        return HealthStatus(
            status="OK" if database_ok else "DEGRADED",
            timestamp=utcnow(),
            uptime_seconds=round(time.monotonic() - app.state.started_at, 3),
            version=config.version,
            checks={
                "database": "ok" if database_ok else "error",
                "notifications": "enabled" if config.notify.enabled else "disabled",
            },
        )

    return app
