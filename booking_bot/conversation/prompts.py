"""Reply text construction for each dialogue step."""

from typing import Optional, Sequence

from booking_bot.config import BusinessConfig
from booking_bot.conversation.fields import FieldDefinition, area_summary
from booking_bot.schemas.booking_schema import NOT_PROVIDED
from booking_bot.tools.availability import DayAvailability

BAND_LABELS = (
    ("morning", "Morning"),
    ("afternoon", "Afternoon"),
    ("evening", "Evening"),
)

FALLBACK_REPLY = "Sorry, something went wrong on our side. Please try again, or say 'hi' to start over."
PERSISTENCE_ERROR_REPLY = "Sorry, there was an error booking your appointment. Please retry."
TIME_FORMAT_HINT = 'Reply with a number from the list, or a time such as "10am" or "2:30pm". Reply "back" to pick another day.'


def build_welcome(business: BusinessConfig, first_prompt: str) -> str:
    return f"Hello! Welcome to {business.name}.\n{first_prompt}"


def build_restart(first_prompt: str) -> str:
    return f"No problem, let's start over.\n{first_prompt}"


def build_menu(business: BusinessConfig, name: Optional[str] = None) -> str:
    """Static options list; answering it never moves the conversation."""
    greeting = f"Hi {name}! " if name and name != NOT_PROVIDED else ""
    return (
        f"{greeting}How can {business.name} help you today?\n"
        "- Keep answering the last question to continue your booking\n"
        "- Reply 'specials' for this month's prices and specials\n"
        "- Reply 'quote' to request a free quote\n"
        "- Reply 'reviews' to read what customers say\n"
        "- Reply 'restart' to start over"
    )


def build_specials_reply(business: BusinessConfig) -> str:
    return f"Our price list and monthly specials: {business.specials_url}"


def build_quote_reply(business: BusinessConfig) -> str:
    return f"Request a free, no-obligation quote here: {business.quote_url}"


def build_reviews_reply(business: BusinessConfig) -> str:
    return (
        f"Customers rate {business.name} 5 stars for punctual, careful work "
        "and for getting out pet stains other companies could not."
    )


def build_field_prompt(field: FieldDefinition) -> str:
    return field.prompt


def build_weekly_overview(days: Sequence[DayAvailability]) -> str:
    """Numbered day list; fully booked days stay listed so numbers are stable."""
    lines = ["Great, thank you! Here's our availability for this week:", ""]
    for index, day in enumerate(days, start=1):
        suffix = f" - {len(day.times)} open" if day.times else " (fully booked)"
        lines.append(f"{index}. {day.day} ({day.date}){suffix}")
    lines.append("")
    lines.append(
        f"Reply with the day number (1-{len(days)}), "
        'or book directly with e.g. "Book 10am Monday".'
    )
    return "\n".join(lines)


def build_day_times(day: DayAvailability) -> str:
    """Open times for one day, numbered continuously across the bands."""
    lines = [f"{day.day} ({day.date})", "Available time slots:"]
    number = 1
    for attr, label in BAND_LABELS:
        times = getattr(day, attr)
        if not times:
            continue
        lines.append("")
        lines.append(f"{label}:")
        for time_label in times:
            lines.append(f"  {number}. {time_label}")
            number += 1
    if number == 1:
        lines.append("")
        lines.append("Sorry, this day is fully booked. Reply \"back\" to pick another day.")
        return "\n".join(lines)
    lines.append("")
    lines.append(TIME_FORMAT_HINT)
    return "\n".join(lines)


def build_day_choice_retry(days: Sequence[DayAvailability]) -> str:
    return f"Please reply with a day number between 1 and {len(days)}.\n\n" + build_weekly_overview(days)


def build_conflict_reply(message: str, alternatives: Sequence[str]) -> str:
    """The conflict reason plus a few open slots to try instead."""
    lines = [message]
    if alternatives:
        lines.append("")
        lines.append("Open slots you could try:")
        for alt in alternatives:
            lines.append(f"- Book {alt}")
    else:
        lines.append("There are no open slots left this week.")
    return "\n".join(lines)


def build_confirmation(
    fields: Sequence[FieldDefinition],
    values: dict[str, str],
    slot: str,
    worker: str,
    business: BusinessConfig,
) -> str:
    """Read-back of every collected detail plus the booked slot and worker."""
    lines = [
        "*Appointment Confirmed!*",
        "",
        f"Date & Time: {slot}",
        f"Worker: {worker}",
    ]
    for field in fields:
        lines.append(f"{field.display_name}: {values.get(field.name, NOT_PROVIDED)}")
    if "areas" not in values:
        lines.append(f"Areas: {area_summary(values)}")
    lines.append("")
    lines.append(f"Your appointment has been booked. Thank you for choosing {business.name}!")
    return "\n".join(lines)
