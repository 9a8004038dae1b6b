from booking_bot.storage.appointments import (
    AppointmentNotFoundError,
    AppointmentStore,
    SlotConflictError,
)
from booking_bot.storage.database import Base, Database
from booking_bot.storage.sessions import SessionRepository

__all__ = [
    "Base",
    "Database",
    "AppointmentStore",
    "AppointmentNotFoundError",
    "SlotConflictError",
    "SessionRepository",
]
