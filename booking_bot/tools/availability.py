"""
Slot availability and booking-request parsing.

Slots are not stored anywhere: the bookable set is recomputed from "now"
and the business-hour policy on every call. A slot's identity is its
canonical string ("Monday 10:00am"); two spellings that canonicalize to the
same string are the same slot.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Collection, Optional, Union

from booking_bot.config import WEEKDAY_NAMES, BusinessConfig, settings

logger = logging.getLogger(__name__)

_DAY_ALTERNATION = "|".join(d.lower() for d in WEEKDAY_NAMES)

BOOKING_PATTERN = re.compile(
    rf"(?<!\d)(\d{{1,2}})(?::(\d{{2}}))?\s*(am|pm)\s+({_DAY_ALTERNATION})\b",
    re.IGNORECASE,
)
TIME_PATTERN = re.compile(r"(?<!\d)(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)

MORNING_END_HOUR = 12
AFTERNOON_END_HOUR = 16


class ParseErrorReason(str, Enum):
    NO_MATCH = "no_match"
    BAD_TIME = "bad_time"
    OUTSIDE_HOURS = "outside_hours"


@dataclass(frozen=True)
class ParseError:
    """Why a free-text booking request could not be turned into a slot."""

    reason: ParseErrorReason
    message: str


@dataclass(frozen=True)
class Slot:
    """A bookable (weekday, time) pair, held in 12-hour form."""

    day: str
    hour: int
    minute: int
    period: str
    calendar_date: Optional[date] = field(default=None, compare=False)

    @property
    def hour24(self) -> int:
        return to_24_hour(self.hour, self.period)

    @property
    def time_label(self) -> str:
        return f"{self.hour}:{self.minute:02d}{self.period}"

    @property
    def key(self) -> str:
        return canonical_slot(self.day, self.hour, self.minute, self.period)

    def __str__(self) -> str:
        return self.key


@dataclass
class DayAvailability:
    """Open times for one day of the window, split into display bands."""

    day: str
    date: str
    morning: list[str] = field(default_factory=list)
    afternoon: list[str] = field(default_factory=list)
    evening: list[str] = field(default_factory=list)

    @property
    def times(self) -> list[str]:
        return self.morning + self.afternoon + self.evening


def to_24_hour(hour: int, period: str) -> int:
    """Convert a 12-hour clock value to 24-hour (12am -> 0, 12pm -> 12)."""
    period = period.lower()
    if period == "pm" and hour != 12:
        return hour + 12
    if period == "am" and hour == 12:
        return 0
    return hour


def canonical_slot(day: str, hour: int, minute: int, period: str) -> str:
    """Render the single text form used as a slot's conflict-detection identity."""
    return f"{day.strip().capitalize()} {hour}:{minute:02d}{period.lower()}"


def slot_key(slot: str) -> str:
    """Case-folded identity used for exact-match conflict comparison."""
    return slot.strip().lower()


def _business(business: Optional[BusinessConfig]) -> BusinessConfig:
    return business if business is not None else settings.business


def _window_days(now: Optional[datetime], business: BusinessConfig) -> list[date]:
    start = (now or datetime.now()).date()
    excluded = {d.lower() for d in business.excluded_weekdays}
    days = []
    for offset in range(business.window_days):
        current = start + timedelta(days=offset)
        if WEEKDAY_NAMES[current.weekday()].lower() in excluded:
            continue
        days.append(current)
    return days


def list_slots(
    now: Optional[datetime] = None, business: Optional[BusinessConfig] = None
) -> list[Slot]:
    """Every bookable slot in the rolling window starting today.

    One slot per whole hour from opening to closing hour inclusive, on each
    day that is not an excluded weekday.
    """
    business = _business(business)
    slots: list[Slot] = []
    for current in _window_days(now, business):
        day_name = WEEKDAY_NAMES[current.weekday()]
        for hour24 in range(business.open_hour, business.close_hour + 1):
            hour12 = hour24 % 12 or 12
            period = "am" if hour24 < 12 else "pm"
            slots.append(
                Slot(day=day_name, hour=hour12, minute=0, period=period, calendar_date=current)
            )
    return slots


def weekly_availability(
    now: Optional[datetime] = None,
    taken: Collection[str] = (),
    business: Optional[BusinessConfig] = None,
) -> list[DayAvailability]:
    """Group the window by day and by morning/afternoon/evening band.

    Days stay in the list even when fully booked so that numbered day
    choices keep pointing at the same day between two messages.
    """
    taken_keys = {slot_key(s) for s in taken}
    by_day: dict[str, DayAvailability] = {}
    for slot in list_slots(now, business):
        entry = by_day.get(slot.day)
        if entry is None:
            entry = DayAvailability(day=slot.day, date=slot.calendar_date.isoformat())
            by_day[slot.day] = entry
        if slot_key(slot.key) in taken_keys:
            continue
        if slot.hour24 < MORNING_END_HOUR:
            entry.morning.append(slot.time_label)
        elif slot.hour24 < AFTERNOON_END_HOUR:
            entry.afternoon.append(slot.time_label)
        else:
            entry.evening.append(slot.time_label)
    return list(by_day.values())


def _build_slot(
    day: str,
    hour_text: str,
    minute_text: Optional[str],
    period: str,
    business: BusinessConfig,
) -> Union[Slot, ParseError]:
    hour = int(hour_text)
    minute = int(minute_text) if minute_text else 0
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        return ParseError(
            ParseErrorReason.BAD_TIME,
            'Invalid time format. Please use format: "10am" or "2:30pm"',
        )

    slot = Slot(day=day.capitalize(), hour=hour, minute=minute, period=period.lower())
    if not business.open_hour <= slot.hour24 <= business.close_hour:
        return ParseError(
            ParseErrorReason.OUTSIDE_HOURS,
            f"Business hours are {_hour_label(business.open_hour)} - "
            f"{_hour_label(business.close_hour)}. Please choose a time within these hours.",
        )
    return slot


def _hour_label(hour24: int) -> str:
    return f"{hour24 % 12 or 12}{'am' if hour24 < 12 else 'pm'}"


def parse_booking_request(
    text: str, business: Optional[BusinessConfig] = None
) -> Union[Slot, ParseError]:
    """
    Extract a "<time><am|pm> <weekday>" pair from free-form text.

    Returns a Slot on success, or a ParseError describing whether no
    day/time pattern was found, the numbers were not a valid clock time,
    or the time falls outside business hours. Never raises for user input.
    """
    business = _business(business)
    match = BOOKING_PATTERN.search(text or "")
    if not match:
        return ParseError(
            ParseErrorReason.NO_MATCH,
            'Invalid format. Please use format: "Book 10am Monday" or "Book 2:30pm Tuesday"',
        )
    hour_text, minute_text, period, day = match.groups()
    result = _build_slot(day, hour_text, minute_text, period, business)
    if isinstance(result, ParseError):
        logger.debug("Rejected booking request %r: %s", text, result.reason.value)
    return result


def extract_time(text: str) -> Optional[str]:
    """Return the first "10am" / "2:30 pm" style token in the text, if any."""
    match = TIME_PATTERN.search(text or "")
    return match.group(0) if match else None
