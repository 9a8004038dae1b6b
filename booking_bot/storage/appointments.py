"""
Appointment persistence.

The UNIQUE constraint on ``slot_key`` makes the insert the authoritative
conflict check: two customers racing for the same slot cannot both commit,
whatever the pre-check in the booking engine said.
"""

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_bot.schemas.booking_schema import (
    AppointmentRecord,
    AppointmentStatus,
    CustomerDetails,
)
from booking_bot.storage.database import Database
from booking_bot.storage.models import AppointmentRow, naive_utc
from booking_bot.tools.availability import slot_key
from booking_bot.utils import as_utc

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    ["worker", "status", *CustomerDetails.model_fields.keys()]
)


class SlotConflictError(Exception):
    """Raised when a write would give a slot a second appointment."""

    def __init__(self, slot: str) -> None:
        self.slot = slot
        super().__init__(f"Slot {slot} is already booked.")


class AppointmentNotFoundError(LookupError):
    """Raised when an appointment id does not exist."""


def new_appointment_id() -> str:
    return f"appt_{uuid.uuid4().hex[:12]}"


def _to_record(row: AppointmentRow) -> AppointmentRecord:
    return AppointmentRecord(
        id=row.id,
        user=row.user,
        slot=row.slot,
        worker=row.worker,
        name=row.name,
        phone=row.phone,
        email=row.email,
        address=row.address,
        rooms=row.rooms,
        hallways=row.hallways,
        stairways=row.stairways,
        areas=row.areas,
        pet_issue=row.pet_issue,
        status=AppointmentStatus(row.status),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


async def _held_slot(session: AsyncSession, slot: str) -> str:
    """The stored spelling of the slot a rejected write collided with."""
    held = await session.scalar(
        select(AppointmentRow.slot).where(AppointmentRow.slot_key == slot_key(slot))
    )
    return held or slot


class AppointmentStore:
    """Async CRUD over the appointments table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def insert(
        self,
        user: str,
        slot: str,
        worker: str,
        details: CustomerDetails,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    ) -> AppointmentRecord:
        """Persist a booking; raises SlotConflictError if the slot is taken."""
        now = naive_utc()
        row = AppointmentRow(
            id=new_appointment_id(),
            user=user,
            slot=slot,
            slot_key=slot_key(slot),
            worker=worker,
            status=status.value,
            created_at=now,
            updated_at=now,
            **details.model_dump(),
        )
        async with self._db.session() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                held = await _held_slot(session, slot)
                logger.info("Insert rejected, slot already held: %s", held)
                raise SlotConflictError(held) from exc
        logger.info("Appointment %s saved: %s with %s", row.id, slot, worker)
        return _to_record(row)

    async def slot_taken(self, slot: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(func.count()).select_from(AppointmentRow).where(
                    AppointmentRow.slot_key == slot_key(slot)
                )
            )
            return result.scalar_one() > 0

    async def count(self) -> int:
        async with self._db.session() as session:
            result = await session.execute(select(func.count()).select_from(AppointmentRow))
            return result.scalar_one()

    async def taken_slots(self) -> list[str]:
        async with self._db.session() as session:
            result = await session.execute(select(AppointmentRow.slot))
            return list(result.scalars())

    async def list_all(self, status: Optional[AppointmentStatus] = None) -> list[AppointmentRecord]:
        stmt = select(AppointmentRow).order_by(AppointmentRow.created_at)
        if status is not None:
            stmt = stmt.where(AppointmentRow.status == status.value)
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [_to_record(row) for row in result.scalars()]

    async def get(self, appointment_id: str) -> AppointmentRecord:
        async with self._db.session() as session:
            row = await session.get(AppointmentRow, appointment_id)
            if row is None:
                raise AppointmentNotFoundError(appointment_id)
            return _to_record(row)

    async def update(self, appointment_id: str, changes: dict[str, Any]) -> AppointmentRecord:
        """Apply an admin edit. ``slot`` must already be in canonical form."""
        async with self._db.session() as session:
            row = await session.get(AppointmentRow, appointment_id)
            if row is None:
                raise AppointmentNotFoundError(appointment_id)
            for name, value in changes.items():
                if name == "slot":
                    row.slot = value
                    row.slot_key = slot_key(value)
                elif name in EDITABLE_FIELDS:
                    setattr(row, name, value.value if isinstance(value, AppointmentStatus) else value)
                else:
                    raise ValueError(f"Field {name!r} cannot be edited")
            row.updated_at = naive_utc()
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                held = await _held_slot(session, changes["slot"])
                raise SlotConflictError(held) from exc
            logger.info("Appointment %s updated: %s", appointment_id, sorted(changes))
            return _to_record(row)

    async def delete(self, appointment_id: str) -> None:
        async with self._db.session() as session:
            row = await session.get(AppointmentRow, appointment_id)
            if row is None:
                raise AppointmentNotFoundError(appointment_id)
            await session.delete(row)
            await session.commit()
        logger.info("Appointment %s deleted", appointment_id)
