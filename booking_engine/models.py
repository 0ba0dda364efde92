# booking_engine/models.py

from typing import Optional, List
from datetime import datetime, timezone, date as Date, time
from decimal import Decimal

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship

_OWNED = {"cascade": "all, delete-orphan"}


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    active: bool = True

    # Schedule data is owned by the barber; appointments are not.
    shifts: List["Shift"] = Relationship(sa_relationship_kwargs=_OWNED)
    absences: List["Absence"] = Relationship(sa_relationship_kwargs=_OWNED)
    blocked_slots: List["BlockedSlot"] = Relationship(sa_relationship_kwargs=_OWNED)


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration_minutes: int
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    active: bool = True


class Shift(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    day_of_week: Optional[int] = None      # 0=Sun, 1=Mon ... 6=Sat (recurring)
    specific_date: Optional[Date] = Field(default=None, index=True)  # override
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    status: str = "active"  # "active" or "inactive"


class Absence(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    start_date: Date
    end_date: Date  # inclusive
    type: str = "personal"  # "vacation", "sick" or "personal"
    notes: Optional[str] = None


class BlockedSlot(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    start_time: time
    end_time: time
    reason: Optional[str] = None


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    client_id: int = Field(index=True)
    service_id: int = Field(foreign_key="service.id")
    appointment_date: Date = Field(index=True)
    appointment_time: time
    duration_minutes: int  # snapshot of the service duration at booking time
    status: str = "pending"
    total_price: Decimal = Field(max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AppointmentSlot(SQLModel, table=True):
    """One row per time bucket held by a non-cancelled appointment.

    The unique constraint makes the database refuse a second appointment on
    the same bucket even if the application-level check was bypassed.
    """
    __tablename__ = "appointment_slot"
    __table_args__ = (
        UniqueConstraint("barber_id", "slot_date", "bucket", name="uq_barber_date_bucket"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    barber_id: int
    slot_date: Date
    bucket: int  # minutes since midnight, aligned to BOOKING_BUCKET_MINUTES


class PricingRule(SQLModel, table=True):
    __tablename__ = "pricing_rule"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    rule_type: str  # time_based, day_based, barber_based, promo
    service_id: Optional[int] = Field(default=None, foreign_key="service.id")
    barber_id: Optional[int] = Field(default=None, foreign_key="barber.id")
    day_of_week: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    price_modifier_type: str  # "percentage" or "fixed"
    price_modifier_value: Decimal = Field(max_digits=10, decimal_places=2)
    valid_from: Optional[Date] = None
    valid_until: Optional[Date] = None
    priority: int = 0
    active: bool = True
