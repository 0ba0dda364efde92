# booking_engine/availability.py

import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlmodel import Session, select

from . import config
from .core import Interval, interval_from_times, subtract_all, to_minutes
from .errors import ValidationError
from .models import Absence, Appointment, BlockedSlot
from .schedule import resolve_working_windows

logger = logging.getLogger(__name__)


def is_absent(absences: Iterable[Absence], on_date: date) -> bool:
    return any(a.start_date <= on_date <= a.end_date for a in absences)


def appointment_interval(appt: Appointment, buffer_minutes: int = 0) -> Interval:
    start = to_minutes(appt.appointment_time)
    return Interval(start, start + appt.duration_minutes + buffer_minutes)


def free_intervals(
    windows: Iterable[Interval],
    blocked_slots: Iterable[BlockedSlot],
    appointments: Iterable[Appointment],
    duration_minutes: int,
    buffer_minutes: int = 0,
) -> List[Interval]:
    """Working windows minus blocks and booked time, keeping what still fits.

    Remainders are kept at minute precision; granularity is only applied
    when slots are generated.
    """
    cuts = [interval_from_times(b.start_time, b.end_time) for b in blocked_slots]
    cuts += [
        appointment_interval(a, buffer_minutes)
        for a in appointments
        if a.status != "cancelled"
    ]
    remaining = subtract_all(windows, cuts)
    return [iv for iv in remaining if iv.length >= duration_minutes]


def compute_free_slots(
    session: Session,
    barber_id: int,
    on_date: date,
    duration_minutes: int,
    buffer_minutes: Optional[int] = None,
) -> List[Interval]:
    if duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")
    if buffer_minutes is None:
        buffer_minutes = config.BOOKING_BUFFER_MINUTES

    # 1) Absence wins over everything, date overrides included
    absences = session.exec(
        select(Absence)
        .where(Absence.barber_id == barber_id)
        .where(Absence.start_date <= on_date)
        .where(Absence.end_date >= on_date)
    ).all()
    if is_absent(absences, on_date):
        logger.debug(f"Barber {barber_id} absent on {on_date}")
        return []

    # 2) Working windows for the day
    windows = resolve_working_windows(session, barber_id, on_date)
    if not windows:
        return []

    # 3) Blocks and non-cancelled appointments for this barber + date
    blocks = session.exec(
        select(BlockedSlot)
        .where(BlockedSlot.barber_id == barber_id)
        .where(BlockedSlot.date == on_date)
    ).all()

    appointments = session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.appointment_date == on_date)
        .where(Appointment.status != "cancelled")
    ).all()

    return free_intervals(windows, blocks, appointments, duration_minutes, buffer_minutes)
