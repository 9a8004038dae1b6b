"""
Booking engine: turns a slot request into a confirmed slot and worker.

The engine decides but never writes. The dialogue controller persists the
result through the appointment store, whose UNIQUE slot constraint settles
any race the pre-check here cannot see.
"""

import logging
from datetime import datetime
from typing import Optional

from booking_bot.config import BusinessConfig, settings
from booking_bot.schemas.booking_schema import BookingResult
from booking_bot.storage.appointments import AppointmentStore
from booking_bot.tools.availability import (
    ParseError,
    Slot,
    list_slots,
    parse_booking_request,
    slot_key,
)

logger = logging.getLogger(__name__)


class BookingEngine:
    """Slot conflict check plus round-robin worker assignment."""

    def __init__(
        self, appointments: AppointmentStore, business: Optional[BusinessConfig] = None
    ) -> None:
        self.appointments = appointments
        self.business = business or settings.business

    def assign_worker(self, booking_count: int) -> str:
        """Worker for the next booking, given how many bookings exist now.

        Deleting appointments lowers the count and so shifts who gets the
        next one.
        """
        workers = self.business.workers
        return workers[booking_count % len(workers)]

    async def book_slot(self, request_text: str, user_key: str) -> BookingResult:
        """Validate a request such as "Book 10am Monday" and pick a worker for it."""
        parsed = parse_booking_request(request_text, self.business)
        if isinstance(parsed, ParseError):
            return BookingResult(success=False, message=parsed.message)

        slot = parsed.key
        if await self.appointments.slot_taken(slot):
            logger.info("Slot %s already booked, rejecting request from %s", slot, user_key)
            return BookingResult(
                success=False,
                slot=slot,
                message=f"Slot {slot} is already booked. Please try another time.",
                conflict=True,
            )

        worker = self.assign_worker(await self.appointments.count())
        logger.info("Slot %s available for %s, assigned %s", slot, user_key, worker)
        return BookingResult(success=True, slot=slot, worker=worker, message=f"Booked {slot} with {worker}")

    async def open_slots(self, now: Optional[datetime] = None) -> list[Slot]:
        """Every slot in the window that no appointment holds yet."""
        taken = {slot_key(s) for s in await self.appointments.taken_slots()}
        return [s for s in list_slots(now, self.business) if slot_key(s.key) not in taken]
