"""Shared test fixtures and helpers."""

import dataclasses
from datetime import datetime
from typing import Optional

import pytest
import pytest_asyncio

from booking_bot.config import (
    AppConfig,
    BusinessConfig,
    DialogueConfig,
    NotifyConfig,
    SessionConfig,
    StorageConfig,
)
from booking_bot.conversation.controller import DialogueController
from booking_bot.conversation.session_store import SessionStore
from booking_bot.schemas.booking_schema import NotificationPayload, NotificationResult
from booking_bot.storage import AppointmentStore, Database, SessionRepository
from booking_bot.tools.booking import BookingEngine

# Monday 17 March 2025, 9am: the window runs Monday to Friday of that week.
FIXED_NOW = datetime(2025, 3, 17, 9, 0)

CUSTOMER = "whatsapp:+15550100"
CUSTOMER_KEY = "5550100"
OTHER_CUSTOMER = "whatsapp:+15550199"

SPLIT_ANSWERS = [
    "Jordan Lee",
    "(555) 010-0100",
    "arlington",
    "Jordan@Example.com",
    "3",
    "1",
    "0",
    "no",
]
AREAS_ANSWERS = [
    "Jordan Lee",
    "555-010-0100",
    "fairfax",
    "jordan@example.com",
    "medium",
    "yes",
]


class FakeNotifier:
    """Records payloads instead of calling Twilio."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[NotificationPayload] = []
        self.closed = False

    async def notify(self, payload: NotificationPayload) -> NotificationResult:
        if self.fail:
            raise RuntimeError("notification transport down")
        self.sent.append(payload)
        return NotificationResult(success=True, sid=f"SM{len(self.sent)}")

    async def aclose(self) -> None:
        self.closed = True


def make_config(tmp_path, **overrides) -> AppConfig:
    """Deterministic config pointing at a temp-file database, independent of env vars."""
    config = AppConfig(
        business=BusinessConfig(
            name="Test Steamers",
            open_hour=8,
            close_hour=18,
            window_days=7,
            excluded_weekdays=("Saturday", "Sunday"),
            workers=("Alice", "Bob", "Charlie"),
            specials_url="https://example.com/specials",
            quote_url="https://example.com/quote",
        ),
        session=SessionConfig(ttl_hours=24, sweep_interval_sec=3600.0, default_country_code="1"),
        dialogue=DialogueConfig(field_variant="split", max_message_length=1000, alternatives_shown=3),
        storage=StorageConfig(database_url=f"sqlite+aiosqlite:///{tmp_path}/test.db", echo_sql=False),
        notify=NotifyConfig(account_sid="", auth_token="", from_number="", admin_number=""),
        log_level="INFO",
        admin_api_token="",
    )
    return dataclasses.replace(config, **overrides)


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)


@pytest_asyncio.fixture
async def db(config):
    database = Database(config.storage)
    await database.connect()
    yield database
    await database.dispose()


@pytest.fixture
def appointments(db):
    return AppointmentStore(db)


@pytest.fixture
def session_repo(db):
    return SessionRepository(db)


@pytest.fixture
def sessions(session_repo, config):
    return SessionStore(session_repo, config.session)


@pytest.fixture
def engine(appointments, config):
    return BookingEngine(appointments, config.business)


@pytest.fixture
def notifier():
    return FakeNotifier()


def make_controller(
    sessions, engine, appointments, notifier, config, now: Optional[datetime] = None
) -> DialogueController:
    return DialogueController(
        sessions,
        engine,
        appointments,
        notifier,
        config=config,
        clock=lambda: now or FIXED_NOW,
    )


@pytest.fixture
def controller(sessions, engine, appointments, notifier, config):
    return make_controller(sessions, engine, appointments, notifier, config)


async def walk_to_slot(controller, user: str = CUSTOMER, answers=SPLIT_ANSWERS):
    """Greet and answer every field question; returns the reply that lists the days."""
    await controller.handle_message(user, "hi")
    reply = None
    for answer in answers:
        reply = await controller.handle_message(user, answer)
    return reply
