"""
Admin query/mutation surface for appointments and live sessions.

When ``ADMIN_API_TOKEN`` is set every route requires
``Authorization: Bearer <token>``; when it is empty the API is open.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from booking_bot.bot import BookingBot
from booking_bot.schemas.booking_schema import (
    AppointmentCreate,
    AppointmentRecord,
    AppointmentStatus,
    AppointmentUpdate,
    CustomerDetails,
)
from booking_bot.schemas.session_schema import Session
from booking_bot.storage import AppointmentNotFoundError, SlotConflictError
from booking_bot.tools.availability import ParseError, parse_booking_request

logger = logging.getLogger(__name__)


def get_bot(request: Request) -> BookingBot:
    return request.app.state.bot


async def require_admin_token(
    bot: BookingBot = Depends(get_bot),
    authorization: Optional[str] = Header(None),
) -> None:
    token = bot.config.admin_api_token
    if token and authorization != f"Bearer {token}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")


router = APIRouter(prefix="/api", tags=["admin"], dependencies=[Depends(require_admin_token)])


def _canonical_slot(bot: BookingBot, slot_text: str) -> str:
    parsed = parse_booking_request(slot_text, bot.config.business)
    if isinstance(parsed, ParseError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=parsed.message)
    return parsed.key


def _not_found(appointment_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail=f"Appointment {appointment_id} not found"
    )


@router.get("/appointments", response_model=list[AppointmentRecord])
async def list_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    bot: BookingBot = Depends(get_bot),
) -> list[AppointmentRecord]:
    return await bot.appointments.list_all(status_filter)


@router.get("/appointments/{appointment_id}", response_model=AppointmentRecord)
async def get_appointment(appointment_id: str, bot: BookingBot = Depends(get_bot)) -> AppointmentRecord:
    try:
        return await bot.appointments.get(appointment_id)
    except AppointmentNotFoundError:
        raise _not_found(appointment_id) from None


@router.post(
    "/appointments", response_model=AppointmentRecord, status_code=status.HTTP_201_CREATED
)
async def create_appointment(
    payload: AppointmentCreate, bot: BookingBot = Depends(get_bot)
) -> AppointmentRecord:
    slot = _canonical_slot(bot, payload.slot)
    worker = payload.worker or bot.engine.assign_worker(await bot.appointments.count())
    details = CustomerDetails(**payload.model_dump(include=set(CustomerDetails.model_fields)))
    try:
        record = await bot.appointments.insert(
            f"admin_{uuid.uuid4().hex[:8]}", slot, worker, details, payload.status
        )
    except SlotConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from None
    logger.info("Admin created appointment %s for %s", record.id, slot)
    return record


@router.patch("/appointments/{appointment_id}", response_model=AppointmentRecord)
async def update_appointment(
    appointment_id: str, payload: AppointmentUpdate, bot: BookingBot = Depends(get_bot)
) -> AppointmentRecord:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "slot" in changes:
        changes["slot"] = _canonical_slot(bot, changes["slot"])
    try:
        return await bot.appointments.update(appointment_id, changes)
    except AppointmentNotFoundError:
        raise _not_found(appointment_id) from None
    except SlotConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from None


@router.delete("/appointments/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(appointment_id: str, bot: BookingBot = Depends(get_bot)) -> None:
    try:
        await bot.appointments.delete(appointment_id)
    except AppointmentNotFoundError:
        raise _not_found(appointment_id) from None


@router.get("/sessions", response_model=dict[str, Session])
async def list_sessions(bot: BookingBot = Depends(get_bot)) -> dict[str, Session]:
    return await bot.sessions.list_sessions()
