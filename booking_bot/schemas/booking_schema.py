"""Booking, appointment and notification data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

NOT_PROVIDED = "N/A"


class AppointmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingResult(BaseModel):
    """Outcome of a slot request.

    ``conflict`` distinguishes "someone already holds this slot" from a
    request that could not be parsed at all.
    """
    success: bool
    slot: Optional[str] = None
    worker: Optional[str] = None
    message: str = ""
    conflict: bool = False


class CustomerDetails(BaseModel):
    """Customer profile fields collected by the dialogue."""
    name: str = NOT_PROVIDED
    phone: str = NOT_PROVIDED
    email: str = NOT_PROVIDED
    address: str = NOT_PROVIDED
    rooms: str = NOT_PROVIDED
    hallways: str = NOT_PROVIDED
    stairways: str = NOT_PROVIDED
    areas: str = NOT_PROVIDED
    pet_issue: str = NOT_PROVIDED


class AppointmentRecord(CustomerDetails):
    """A persisted, confirmed reservation of exactly one slot."""
    id: str
    user: str
    slot: str
    worker: str
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    created_at: datetime
    updated_at: datetime


class AppointmentCreate(CustomerDetails):
    """Admin-side creation request; ``slot`` is free text such as "10am Monday"."""
    slot: str
    worker: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.CONFIRMED


class AppointmentUpdate(BaseModel):
    """Partial admin edit. Only fields that are set get written."""
    slot: Optional[str] = None
    worker: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    rooms: Optional[str] = None
    hallways: Optional[str] = None
    stairways: Optional[str] = None
    areas: Optional[str] = None
    pet_issue: Optional[str] = None


class NotificationPayload(BaseModel):
    """Flat record sent to the administrator when a booking is confirmed."""
    name: str = NOT_PROVIDED
    phone: str = NOT_PROVIDED
    email: str = NOT_PROVIDED
    address: str = NOT_PROVIDED
    areas: str = NOT_PROVIDED
    pet_issue: str = NOT_PROVIDED
    slot: str = NOT_PROVIDED
    worker: str = NOT_PROVIDED


class NotificationResult(BaseModel):
    success: bool = False
    skipped: bool = False
    sid: Optional[str] = None
    error: Optional[str] = None


class HealthStatus(BaseModel):
    status: str = "OK"
    timestamp: datetime
    uptime_seconds: float
    version: str
    checks: dict[str, str] = Field(default_factory=dict)
