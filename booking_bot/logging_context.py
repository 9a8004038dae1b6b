"""User-key logging context for tracing one conversation across modules.

Every inbound message is handled as one turn for one normalized user key.
The key is stored in a context variable so every log line emitted while the
turn is processed can be attributed to the customer that triggered it.

Usage:
    from booking_bot.logging_context import get_turn_logger, set_user_key

    set_user_key("5550100")
    logger = get_turn_logger(__name__)
    logger.info("Processing message")  # -> [5550100] Processing message
"""

import logging
from contextvars import ContextVar

NO_USER = "-"

_user_key: ContextVar[str] = ContextVar("user_key", default=NO_USER)


def set_user_key(user_key: str) -> None:
    """Set the correlation key for the current async context."""
    _user_key.set(user_key)


def get_user_key() -> str:
    """Retrieve the current correlation key."""
    return _user_key.get()


class UserKeyFilter(logging.Filter):
    """Injects user_key into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.user_key = _user_key.get()  # type: ignore[attr-defined]
        return True


def install_user_key_filter() -> None:
    """Attach the filter to every root handler so ``%(user_key)s`` always resolves."""
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, UserKeyFilter) for f in handler.filters):
            handler.addFilter(UserKeyFilter())


def get_turn_logger(name: str) -> logging.Logger:
    """Return a logger with the UserKeyFilter attached.

    The filter adds ``user_key`` to each record so formatters can
    include ``%(user_key)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, UserKeyFilter) for f in logger.filters):
        logger.addFilter(UserKeyFilter())
    return logger
