# booking_engine/schemas.py

from pydantic import BaseModel, ConfigDict, Field, model_validator
from enum import Enum
from datetime import datetime, date, time
from decimal import Decimal
from typing import List, Optional


class ShiftStatus(str, Enum):
    active = "active"
    inactive = "inactive"

class AbsenceType(str, Enum):
    vacation = "vacation"
    sick = "sick"
    personal = "personal"

class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"

class RuleType(str, Enum):
    time_based = "time_based"
    day_based = "day_based"
    barber_based = "barber_based"
    promo = "promo"

class ModifierType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"


# ---- barbers / services ----

class BarberCreate(BaseModel):
    name: str = Field(min_length=1)

class BarberPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    active: bool

class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    duration_minutes: int = Field(gt=0)
    price: Decimal = Field(ge=0)

class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    duration_minutes: int
    price: Decimal
    active: bool


# ---- schedule data ----

class ShiftCreate(BaseModel):
    barber_id: int
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)  # 0=Sun ... 6=Sat
    specific_date: Optional[date] = None
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    status: ShiftStatus = ShiftStatus.active

    @model_validator(mode="after")
    def check_shift(self):
        if (self.day_of_week is None) == (self.specific_date is None):
            raise ValueError("exactly one of day_of_week or specific_date must be set")
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("break_start and break_end must be set together")
        if self.break_start is not None:
            if not (self.start_time <= self.break_start < self.break_end <= self.end_time):
                raise ValueError("break must lie inside the shift and start before it ends")
        return self

class ShiftPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    day_of_week: Optional[int]
    specific_date: Optional[date]
    start_time: time
    end_time: time
    break_start: Optional[time]
    break_end: Optional[time]
    status: ShiftStatus

class AbsenceCreate(BaseModel):
    barber_id: int
    start_date: date
    end_date: date
    type: AbsenceType = AbsenceType.personal
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date cannot be after end_date")
        return self

class AbsencePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    start_date: date
    end_date: date
    type: AbsenceType
    notes: Optional[str]

class BlockedSlotCreate(BaseModel):
    barber_id: int
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

class BlockedSlotPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    date: date
    start_time: time
    end_time: time
    reason: Optional[str]


# ---- pricing ----

class PricingRuleCreate(BaseModel):
    name: str = Field(min_length=1)
    rule_type: RuleType
    service_id: Optional[int] = None
    barber_id: Optional[int] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    price_modifier_type: ModifierType
    price_modifier_value: Decimal
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    priority: int = 0

    @model_validator(mode="after")
    def check_rule(self):
        if self.rule_type == RuleType.day_based and self.day_of_week is None:
            raise ValueError("day_based rules need day_of_week")
        if self.rule_type == RuleType.barber_based and self.barber_id is None:
            raise ValueError("barber_based rules need barber_id")
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be set together")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            raise ValueError("valid_from cannot be after valid_until")
        return self

class PricingRulePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    rule_type: RuleType
    service_id: Optional[int]
    barber_id: Optional[int]
    day_of_week: Optional[int]
    start_time: Optional[time]
    end_time: Optional[time]
    price_modifier_type: ModifierType
    price_modifier_value: Decimal
    valid_from: Optional[date]
    valid_until: Optional[date]
    priority: int
    active: bool

class PricingRuleUpdate(BaseModel):
    """Partial edit; the merged rule is re-checked against PricingRuleCreate."""
    name: Optional[str] = Field(default=None, min_length=1)
    rule_type: Optional[RuleType] = None
    service_id: Optional[int] = None
    barber_id: Optional[int] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    price_modifier_type: Optional[ModifierType] = None
    price_modifier_value: Optional[Decimal] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    priority: Optional[int] = None
    active: Optional[bool] = None

class PriceQuote(BaseModel):
    base_price: Decimal
    final_price: Decimal
    applied_rule_id: Optional[int] = None
    applied_rule_name: Optional[str] = None


# ---- appointments ----

class AppointmentCreate(BaseModel):
    barber_id: int
    client_id: int
    service_id: int
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus = AppointmentStatus.pending
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_initial_status(self):
        if self.status not in (AppointmentStatus.pending, AppointmentStatus.confirmed):
            raise ValueError("new appointments start as pending or confirmed")
        if self.appointment_time.second or self.appointment_time.microsecond:
            raise ValueError("appointment_time must be on a whole minute")
        return self

class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    client_id: int
    service_id: int
    appointment_date: date
    appointment_time: time
    duration_minutes: int
    status: AppointmentStatus
    total_price: Decimal
    notes: Optional[str]
    created_at: datetime

class StatusUpdate(BaseModel):
    status: AppointmentStatus


# ---- availability ----

class TimeWindow(BaseModel):
    start: time
    end: time

class SlotPublic(BaseModel):
    time: str  # "HH:MM"
    price: Decimal

class AvailabilityResponse(BaseModel):
    barber_id: int
    date: date
    service_id: int
    free_intervals: List[TimeWindow]
    slots: List[SlotPublic]
