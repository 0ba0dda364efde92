# booking_engine/booking.py
"""
The booking write path.

Creating an appointment is "read the barber's day, then insert". Two
requests for the same barber and date are serialized by an in-process lock
keyed by ``(barber_id, date)``; the ``appointment_slot`` unique constraint
backs that up at the storage level, so a double-booking can never be
persisted even across processes. Both failure modes surface as
``ConflictError`` and are never retried here.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date, time
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from . import config
from .availability import compute_free_slots
from .cache import AvailabilityCache
from .core import Interval, contains, format_minutes, to_minutes
from .errors import ConflictError, NotFoundError, PreconditionError, ValidationError
from .models import Appointment, AppointmentSlot, Barber, Service
from .pricing import compute_price

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

_registry_lock = threading.Lock()
_day_locks: Dict[Tuple[int, date], threading.Lock] = {}


def _lock_for(barber_id: int, on_date: date) -> threading.Lock:
    with _registry_lock:
        return _day_locks.setdefault((barber_id, on_date), threading.Lock())


@contextmanager
def barber_day_lock(barber_id: int, on_date: date, timeout: Optional[float] = None):
    if timeout is None:
        timeout = config.BOOKING_LOCK_TIMEOUT
    lock = _lock_for(barber_id, on_date)
    if not lock.acquire(timeout=timeout):
        logger.warning(f"Timed out waiting for booking lock on barber {barber_id} / {on_date}")
        raise ConflictError("Barber's schedule is busy, please try again")
    try:
        yield
    finally:
        lock.release()


def claim_buckets(start_minutes: int, duration_minutes: int, bucket_minutes: Optional[int] = None) -> List[int]:
    """Buckets touched by ``[start, start + duration)``, aligned to the bucket size."""
    if bucket_minutes is None:
        bucket_minutes = config.BOOKING_BUCKET_MINUTES
    first = (start_minutes // bucket_minutes) * bucket_minutes
    return list(range(first, start_minutes + duration_minutes, bucket_minutes))


def get_active_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise NotFoundError("Barber not found")
    if not barber.active:
        raise PreconditionError("Barber is not active")
    return barber


def get_active_service(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service not found")
    if not service.active:
        raise PreconditionError("Service is not available")
    return service


def create_appointment(
    session: Session,
    barber_id: int,
    client_id: int,
    service_id: int,
    on_date: date,
    at: time,
    status: str = "pending",
    notes: Optional[str] = None,
    cache: Optional[AvailabilityCache] = None,
) -> Appointment:
    if status not in ("pending", "confirmed"):
        raise ValidationError("New appointments start as pending or confirmed")
    # intervals and bucket claims are minute based
    if at.second or at.microsecond:
        raise ValidationError("Appointment time must be on a whole minute")

    # 1) Preconditions, before any availability work
    get_active_barber(session, barber_id)
    service = get_active_service(session, service_id)

    requested = Interval(to_minutes(at), to_minutes(at) + service.duration_minutes)

    with barber_day_lock(barber_id, on_date):
        # 2) Re-check availability against current data (never the cache)
        free = compute_free_slots(session, barber_id, on_date, service.duration_minutes)
        if not any(contains(window, requested) for window in free):
            logger.warning(
                f"Slot {format_minutes(requested.start)} on {on_date} is not free for barber {barber_id}"
            )
            raise ConflictError("Requested time is no longer available")

        # 3) Price is snapshotted at booking time
        quote = compute_price(session, service.price, barber_id, service_id, on_date, at)

        appt = Appointment(
            barber_id=barber_id,
            client_id=client_id,
            service_id=service_id,
            appointment_date=on_date,
            appointment_time=at,
            duration_minutes=service.duration_minutes,
            status=status,
            total_price=quote.final_price,
            notes=notes,
        )

        # 4) Insert appointment and its bucket claims in one transaction
        session.add(appt)
        try:
            session.flush()  # fills appt.id
            for bucket in claim_buckets(requested.start, service.duration_minutes):
                session.add(AppointmentSlot(
                    appointment_id=appt.id,
                    barber_id=barber_id,
                    slot_date=on_date,
                    bucket=bucket,
                ))
            session.commit()
        except IntegrityError:
            session.rollback()
            logger.warning(f"Storage constraint rejected overlapping booking for barber {barber_id} on {on_date}")
            raise ConflictError("Appointment overlaps an existing appointment")

    session.refresh(appt)
    logger.info(
        f"Appointment {appt.id} booked: barber {barber_id} {on_date} {format_minutes(requested.start)} "
        f"({service.duration_minutes} min, {appt.total_price})"
    )
    if cache is not None:
        cache.invalidate_barber(barber_id)
    return appt


def _get_appointment(session: Session, appointment_id: int) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if appt is None:
        raise NotFoundError("Appointment not found")
    return appt


def update_status(
    session: Session,
    appointment_id: int,
    new_status: str,
    cache: Optional[AvailabilityCache] = None,
) -> Appointment:
    appt = _get_appointment(session, appointment_id)

    if new_status not in ALLOWED_TRANSITIONS.get(appt.status, set()):
        raise ConflictError(f"Cannot change appointment from {appt.status} to {new_status}")

    appt.status = new_status
    session.add(appt)
    if new_status == "cancelled":
        # Cancelled appointments no longer hold their time
        session.execute(delete(AppointmentSlot).where(AppointmentSlot.appointment_id == appt.id))
    session.commit()
    session.refresh(appt)

    logger.info(f"Appointment {appt.id} is now {new_status}")
    if cache is not None:
        cache.invalidate_barber(appt.barber_id)
    return appt


def cancel_appointment(
    session: Session,
    appointment_id: int,
    cache: Optional[AvailabilityCache] = None,
) -> Appointment:
    appt = _get_appointment(session, appointment_id)
    if appt.status == "cancelled":
        raise ConflictError("Appointment already cancelled")
    return update_status(session, appointment_id, "cancelled", cache=cache)


def list_appointments(
    session: Session,
    barber_id: int,
    on_date: Optional[date] = None,
    status: Optional[str] = None,
) -> List[Appointment]:
    stmt = select(Appointment).where(Appointment.barber_id == barber_id)
    if on_date is not None:
        stmt = stmt.where(Appointment.appointment_date == on_date)
    if status is not None:
        stmt = stmt.where(Appointment.status == status)
    stmt = stmt.order_by(Appointment.appointment_date, Appointment.appointment_time)
    return session.exec(stmt).all()
