"""
Centralized configuration with environment variable overrides.

Business hours, the worker roster, session expiry, storage location and the
admin notification credentials are all configurable here. Nothing is
hardcoded in the dialogue or booking logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from booking_bot.logging_context import install_user_key_filter

load_dotenv()

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
FIELD_VARIANTS = ("split", "areas")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _csv(env_var: str, default: str) -> tuple[str, ...]:
    """Split a comma-separated env var into a tuple of trimmed, non-empty items."""
    raw = os.getenv(env_var, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class BusinessConfig:
    """Business hours, booking window and worker roster."""

    name: str = os.getenv("BUSINESS_NAME", "Arlington Steamers Carpet Cleaning")
    open_hour: int = _safe_int("OPEN_HOUR", "8")
    close_hour: int = _safe_int("CLOSE_HOUR", "18")
    window_days: int = _safe_int("BOOKING_WINDOW_DAYS", "7")
    excluded_weekdays: tuple[str, ...] = _csv("EXCLUDED_WEEKDAYS", "Saturday,Sunday")
    workers: tuple[str, ...] = _csv("WORKERS", "Alice,Bob,Charlie")
    specials_url: str = os.getenv(
        "SPECIALS_URL", "https://www.arlingtonsteamers.com/price-list-and-monthly-specials"
    )
    quote_url: str = os.getenv("QUOTE_URL", "https://www.arlingtonsteamers.com/free-quote")


@dataclass(frozen=True)
class SessionConfig:
    """Dialogue session lifetime and user-key normalization."""

    ttl_hours: int = _safe_int("SESSION_TTL_HOURS", "24")
    sweep_interval_sec: float = _safe_float("SESSION_SWEEP_INTERVAL_SEC", "3600")
    default_country_code: str = os.getenv("DEFAULT_COUNTRY_CODE", "1")


@dataclass(frozen=True)
class DialogueConfig:
    """Conversation flow shape and reply limits."""

    field_variant: str = os.getenv("DIALOGUE_FIELD_VARIANT", "split")
    max_message_length: int = _safe_int("MAX_MESSAGE_LENGTH", "1000")
    alternatives_shown: int = _safe_int("ALTERNATIVES_SHOWN", "3")


@dataclass(frozen=True)
class StorageConfig:
    """Embedded database location."""

    database_url: str = os.getenv(
        "DATABASE_URL", "sqlite+aiosqlite:///./data/appointments.db"
    )
    echo_sql: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass(frozen=True)
class NotifyConfig:
    """Twilio credentials for the admin WhatsApp notification."""

    account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    from_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    admin_number: str = os.getenv("ADMIN_WHATSAPP_NUMBER", "")
    api_base_url: str = os.getenv("TWILIO_API_BASE_URL", "https://api.twilio.com")
    timeout_sec: float = _safe_float("NOTIFY_TIMEOUT_SEC", "10")

    @property
    def enabled(self) -> bool:
        return all((self.account_sid, self.auth_token, self.from_number, self.admin_number))


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    admin_api_token: str = os.getenv("ADMIN_API_TOKEN", "")
    version: str = os.getenv("APP_VERSION", "1.0.0")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    biz = config.business
    for hour_name, hour_value in [("OPEN_HOUR", biz.open_hour), ("CLOSE_HOUR", biz.close_hour)]:
        if not 0 <= hour_value <= 23:
            raise ValueError(f"{hour_name} must be between 0 and 23, got {hour_value}")
    if biz.open_hour > biz.close_hour:
        raise ValueError(
            f"OPEN_HOUR ({biz.open_hour}) must not be after CLOSE_HOUR ({biz.close_hour})"
        )
    if not 1 <= biz.window_days <= len(WEEKDAY_NAMES):
        # Slots are keyed by weekday name, so one weekday may appear only once.
        raise ValueError(
            f"BOOKING_WINDOW_DAYS must be between 1 and {len(WEEKDAY_NAMES)}, got {biz.window_days}"
        )
    unknown = [d for d in biz.excluded_weekdays if d.capitalize() not in WEEKDAY_NAMES]
    if unknown:
        raise ValueError(f"EXCLUDED_WEEKDAYS contains unknown day names: {unknown}")
    if not biz.workers:
        raise ValueError("WORKERS must name at least one worker")

    if config.session.ttl_hours < 1:
        raise ValueError(f"SESSION_TTL_HOURS must be >= 1, got {config.session.ttl_hours}")
    if config.session.sweep_interval_sec <= 0:
        raise ValueError(
            "SESSION_SWEEP_INTERVAL_SEC must be > 0, "
            f"got {config.session.sweep_interval_sec}"
        )
    if not config.session.default_country_code.isdigit():
        raise ValueError(
            "DEFAULT_COUNTRY_CODE must be digits only, "
            f"got {config.session.default_country_code!r}"
        )

    if config.dialogue.field_variant not in FIELD_VARIANTS:
        raise ValueError(
            f"DIALOGUE_FIELD_VARIANT must be one of {FIELD_VARIANTS}, "
            f"got {config.dialogue.field_variant!r}"
        )
    if config.dialogue.max_message_length < 1:
        raise ValueError(
            f"MAX_MESSAGE_LENGTH must be >= 1, got {config.dialogue.max_message_length}"
        )
    if config.dialogue.alternatives_shown < 0:
        raise ValueError(
            f"ALTERNATIVES_SHOWN must be >= 0, got {config.dialogue.alternatives_shown}"
        )

    if not config.storage.database_url:
        raise ValueError("DATABASE_URL must be set")
    if config.notify.timeout_sec <= 0:
        raise ValueError(f"NOTIFY_TIMEOUT_SEC must be > 0, got {config.notify.timeout_sec}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(user_key)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_user_key_filter()
    logger.info("Configuration loaded for '%s'", config.business.name)
    if not config.notify.enabled:
        logger.warning("Twilio credentials missing; admin notifications will be skipped")
    return config


# Singleton instance
settings = load_config()
