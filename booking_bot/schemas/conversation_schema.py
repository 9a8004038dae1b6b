"""Schemas describing one conversation turn."""

from typing import Optional

from pydantic import BaseModel, Field

from booking_bot.schemas.booking_schema import BookingResult
from booking_bot.schemas.session_schema import DialogueStep


class TurnReply(BaseModel):
    """Everything the transport needs to answer one inbound message.

    ``step`` is where the conversation is parked after the turn, or ``None``
    when the session was cleared (booking completed).
    """

    user_key: str
    messages: list[str] = Field(default_factory=list)
    step: Optional[DialogueStep] = None
    booking: Optional[BookingResult] = None

    @property
    def text(self) -> str:
        return "\n\n".join(self.messages)
