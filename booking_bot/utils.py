"""Shared utilities used across the booking bot."""

import re
from datetime import datetime, timezone

_SCHEME_PREFIX = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone("+1 (555) 010-0")
        '+15550100'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def normalize_user_key(value: str, country_code: str = "1") -> str:
    """Reduce a channel address to the key sessions are stored under.

    The channel scheme (``whatsapp:``, ``sms:``...) and all punctuation are
    dropped, and a leading ``+`` is ignored. A number starting with the
    default country code is folded onto its national form, so the same
    customer writing from differently formatted addresses always lands on
    one session. The code is only dropped once: a remainder that itself
    starts with the code is left alone, which keeps the result stable when
    normalized again.

    Examples:
        >>> normalize_user_key("whatsapp:+1-555-0100")
        '5550100'
        >>> normalize_user_key("whatsapp:15550100")
        '5550100'
        >>> normalize_user_key("5550100")
        '5550100'
        >>> normalize_user_key("whatsapp:+44 20 7946 0000")
        '442079460000'
    """
    raw = _SCHEME_PREFIX.sub("", value.strip(), count=1).strip()
    digits = normalize_phone(raw).lstrip("+")
    if not digits:
        return raw.lower()
    if country_code and digits.startswith(country_code):
        national = digits[len(country_code):]
        if national and not national.startswith(country_code):
            return national
    return digits


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
