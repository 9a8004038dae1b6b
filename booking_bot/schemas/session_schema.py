"""Dialogue session model shared by the session store and the controller."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DialogueStep(str, Enum):
    """Every state a conversation can be parked in between two messages."""

    START = "start"
    NAME = "name"
    PHONE = "phone"
    ADDRESS = "address"
    EMAIL = "email"
    ROOMS = "rooms"
    HALLWAYS = "hallways"
    STAIRWAYS = "stairways"
    AREAS = "areas"
    PET_ISSUE = "pet_issue"
    SLOT = "slot"
    TIME = "time"


class Session(BaseModel):
    """
    One customer's in-progress conversation.

    ``fields`` holds whatever has been collected so far (name, phone, email,
    address, area counts, pet issue, selected day, booked slot and worker).
    The controller is the only writer; the booking engine only reads it.
    """

    user_key: str
    step: DialogueStep = DialogueStep.START
    fields: dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    last_activity: datetime

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.fields.get(name, default)
