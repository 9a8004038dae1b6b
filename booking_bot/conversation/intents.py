"""
Control-token detection for inbound messages.

A handful of messages mean the same thing whatever step the conversation is
in: greetings and restart requests reset it, "menu" redisplays the options,
and the info keywords answer a question without moving the dialogue. These
are recognised only when they make up the whole message, so a name such as
"Hilda" or an address on "Hillside Rd" never triggers a reset.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ControlIntent(str, Enum):
    GREETING = "greeting"
    RESTART = "restart"
    MENU = "menu"
    SPECIALS = "specials"
    QUOTE = "quote"
    REVIEWS = "reviews"


GREETING_TOKENS = frozenset(["hi", "hello", "hey", "hiya", "good morning", "good afternoon"])
RESTART_TOKENS = frozenset(["restart", "start over", "start_over", "reset", "cancel"])
MENU_TOKENS = frozenset(["menu", "help", "options", "back_to_menu"])
INFO_TOKENS: dict[str, ControlIntent] = {
    "specials": ControlIntent.SPECIALS,
    "monthly specials": ControlIntent.SPECIALS,
    "monthly_specials": ControlIntent.SPECIALS,
    "quote": ControlIntent.QUOTE,
    "free quote": ControlIntent.QUOTE,
    "free_quote": ControlIntent.QUOTE,
    "reviews": ControlIntent.REVIEWS,
    "customer reviews": ControlIntent.REVIEWS,
    "customer_reviews": ControlIntent.REVIEWS,
}

_TRAILING_PUNCTUATION = re.compile(r"[\s!?.,]+$")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class SanitizedInput:
    """Inbound text after trimming, plus whether it had to be cut short."""
    text: str
    truncated: bool = False


def sanitize_input(raw: Optional[str], max_length: int) -> SanitizedInput:
    """Trim whitespace and cap the message length."""
    text = (raw or "").strip()
    if len(text) > max_length:
        logger.warning("Inbound message truncated from %d to %d chars", len(text), max_length)
        return SanitizedInput(text=text[:max_length].rstrip(), truncated=True)
    return SanitizedInput(text=text)


def _token(text: str) -> str:
    lowered = _WHITESPACE.sub(" ", text.strip().lower())
    return _TRAILING_PUNCTUATION.sub("", lowered)


def detect_control_intent(text: str) -> Optional[ControlIntent]:
    """Classify a whole message as a control token, or None for ordinary input."""
    token = _token(text)
    if not token:
        return None
    if token in GREETING_TOKENS:
        return ControlIntent.GREETING
    if token in RESTART_TOKENS:
        return ControlIntent.RESTART
    if token in MENU_TOKENS:
        return ControlIntent.MENU
    return INFO_TOKENS.get(token)
