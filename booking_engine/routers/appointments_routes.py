# booking_engine/routers/appointments_routes.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from booking_engine.booking import cancel_appointment, create_appointment, update_status
from booking_engine.cache import AvailabilityCache
from booking_engine.db import get_session
from booking_engine.deps import get_cache
from booking_engine.schemas import AppointmentCreate, AppointmentPublic, StatusUpdate

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.post("", response_model=AppointmentPublic, status_code=201)
def book_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    # ConflictError (409) means the slot was taken meanwhile: the client
    # must refresh availability and pick again.
    return create_appointment(
        session,
        barber_id=appt.barber_id,
        client_id=appt.client_id,
        service_id=appt.service_id,
        on_date=appt.appointment_date,
        at=appt.appointment_time,
        status=appt.status.value,
        notes=appt.notes,
        cache=cache,
    )


@router.patch("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel(
    appt_id: int,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    return cancel_appointment(session, appt_id, cache=cache)


@router.patch("/{appt_id}/status", response_model=AppointmentPublic)
def change_status(
    appt_id: int,
    update: StatusUpdate,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    return update_status(session, appt_id, update.status.value, cache=cache)
