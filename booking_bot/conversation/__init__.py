from booking_bot.conversation.controller import DialogueController
from booking_bot.conversation.fields import FieldDefinition, get_field_set
from booking_bot.conversation.intents import ControlIntent, detect_control_intent
from booking_bot.conversation.session_store import SessionStore
from booking_bot.conversation.state_machine import DialogueFlow, InvalidTransitionError

__all__ = [
    "DialogueController",
    "DialogueFlow",
    "InvalidTransitionError",
    "SessionStore",
    "FieldDefinition",
    "get_field_set",
    "ControlIntent",
    "detect_control_intent",
]
