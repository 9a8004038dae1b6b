"""ORM tables for appointments and dialogue sessions."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from booking_bot.schemas.booking_schema import NOT_PROVIDED, AppointmentStatus
from booking_bot.storage.database import Base


def naive_utc(value: Optional[datetime] = None) -> datetime:
    """SQLite keeps no timezone; everything is stored as naive UTC."""
    value = value or datetime.now(timezone.utc)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _now() -> datetime:
    return naive_utc()


class AppointmentRow(Base):
    __tablename__ = "appointments"
    # Global slot exclusivity: the insert itself is the conflict check.
    __table_args__ = (UniqueConstraint("slot_key", name="uq_appointments_slot"),)

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    user: Mapped[str] = mapped_column(String(128), index=True)
    slot: Mapped[str] = mapped_column(String(64))
    slot_key: Mapped[str] = mapped_column(String(64))
    worker: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    phone: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    email: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    address: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    rooms: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    hallways: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    stairways: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    areas: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    pet_issue: Mapped[str] = mapped_column(Text, default=NOT_PROVIDED)
    status: Mapped[str] = mapped_column(String(20), default=AppointmentStatus.CONFIRMED.value)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_now)


class SessionRow(Base):
    __tablename__ = "sessions"

    user_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    step: Mapped[str] = mapped_column(String(32))
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)
    last_activity: Mapped[datetime] = mapped_column(DateTime, default=_now, index=True)
