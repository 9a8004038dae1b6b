"""
Customer fields collected before slot selection, declared as data.

The dialogue asks for one field per message in the order listed here. Two
variants exist: ``split`` asks separately for rooms, hallways and stairways;
``areas`` asks one combined question. Choosing a variant is configuration,
not a different state machine.

Usage:
    fields = get_field_set("areas")
    [f.name for f in fields]
    # ['name', 'phone', 'address', 'email', 'areas', 'pet_issue']
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from booking_bot.schemas.session_schema import DialogueStep
from booking_bot.utils import normalize_phone


MIN_PHONE_DIGITS = 7


def _normalize_phone_field(value: str) -> str:
    cleaned = normalize_phone(value)
    digits = cleaned.lstrip("+")
    return cleaned if len(digits) >= MIN_PHONE_DIGITS else value


@dataclass(frozen=True)
class FieldDefinition:
    """Schema for a single field to collect."""

    name: str
    step: DialogueStep
    display_name: str
    prompt: str
    # Button ids and quick-reply words mapped to the value actually stored.
    shortcuts: dict[str, str] = field(default_factory=dict)
    normalizer: Optional[Callable[[str], str]] = None

    def normalize(self, raw_value: str) -> str:
        value = raw_value.strip()
        shortcut = self.shortcuts.get(value.lower())
        if shortcut is not None:
            return shortcut
        if self.normalizer is not None:
            return self.normalizer(value)
        return value


NAME = FieldDefinition(
    name="name",
    step=DialogueStep.NAME,
    display_name="Name",
    prompt="What is your *name*?",
)
PHONE = FieldDefinition(
    name="phone",
    step=DialogueStep.PHONE,
    display_name="Phone",
    prompt="Please enter your phone number:",
    normalizer=_normalize_phone_field,
)
ADDRESS = FieldDefinition(
    name="address",
    step=DialogueStep.ADDRESS,
    display_name="Address",
    prompt=(
        "Please enter your address (# street, city)\n"
        "Example: 1234 Wayne Drive, Arlington, VA\n"
        "Or reply arlington, alexandria or fairfax."
    ),
    shortcuts={
        "address_arlington": "Arlington, VA",
        "arlington": "Arlington, VA",
        "address_alexandria": "Alexandria, VA",
        "alexandria": "Alexandria, VA",
        "address_fairfax": "Fairfax, VA",
        "fairfax": "Fairfax, VA",
    },
)
EMAIL = FieldDefinition(
    name="email",
    step=DialogueStep.EMAIL,
    display_name="Email",
    prompt="Please enter your email:",
    normalizer=str.lower,
)
ROOMS = FieldDefinition(
    name="rooms",
    step=DialogueStep.ROOMS,
    display_name="Rooms",
    prompt="How many *rooms* need cleaning?",
)
HALLWAYS = FieldDefinition(
    name="hallways",
    step=DialogueStep.HALLWAYS,
    display_name="Hallways",
    prompt="How many *hallways*?",
)
STAIRWAYS = FieldDefinition(
    name="stairways",
    step=DialogueStep.STAIRWAYS,
    display_name="Stairways",
    prompt="How many *stairways*?",
)
AREAS = FieldDefinition(
    name="areas",
    step=DialogueStep.AREAS,
    display_name="Areas",
    prompt=(
        "How many rooms, stairs, or hallways to clean?\n"
        "Example: 5 rooms, 2 stairs, 1 hallway\n"
        "Or reply small, medium or large."
    ),
    shortcuts={
        "areas_small": "2-3 rooms, 1 hallway",
        "small": "2-3 rooms, 1 hallway",
        "areas_medium": "4-6 rooms, 1-2 hallways, 1 stair",
        "medium": "4-6 rooms, 1-2 hallways, 1 stair",
        "areas_large": "7+ rooms, 2+ hallways, 2+ stairs",
        "large": "7+ rooms, 2+ hallways, 2+ stairs",
    },
)
PET_ISSUE = FieldDefinition(
    name="pet_issue",
    step=DialogueStep.PET_ISSUE,
    display_name="Pet Issue",
    prompt="Any *pet urine issue*? (yes/no)",
    shortcuts={
        "pet_issue_yes": "Yes",
        "yes": "Yes",
        "y": "Yes",
        "pet_issue_no": "No",
        "no": "No",
        "n": "No",
    },
)

FIELD_SETS: dict[str, tuple[FieldDefinition, ...]] = {
    "split": (NAME, PHONE, ADDRESS, EMAIL, ROOMS, HALLWAYS, STAIRWAYS, PET_ISSUE),
    "areas": (NAME, PHONE, ADDRESS, EMAIL, AREAS, PET_ISSUE),
}


def get_field_set(variant: str) -> tuple[FieldDefinition, ...]:
    try:
        return FIELD_SETS[variant]
    except KeyError:
        raise ValueError(f"Unknown field variant: {variant}") from None


def area_summary(values: dict[str, str]) -> str:
    """One-line description of the areas to clean, whichever variant collected them."""
    if values.get("areas"):
        return values["areas"]
    parts = [
        f"{values[name]} {name}"
        for name in ("rooms", "hallways", "stairways")
        if values.get(name)
    ]
    return ", ".join(parts) if parts else "N/A"
