# booking_engine/routers/barbers_routes.py

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from booking_engine import config
from booking_engine.availability import compute_free_slots
from booking_engine.booking import get_active_barber, get_active_service, list_appointments
from booking_engine.cache import AvailabilityCache
from booking_engine.core import format_minutes, from_minutes
from booking_engine.db import get_session
from booking_engine.deps import get_cache, require_barber
from booking_engine.models import Appointment, Barber, PricingRule
from booking_engine.pricing import load_active_rules, quote_price
from booking_engine.schemas import (
    AppointmentPublic,
    AppointmentStatus,
    AvailabilityResponse,
    BarberCreate,
    BarberPublic,
)
from booking_engine.slots import generate_slots

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(barber: BarberCreate, session: Session = Depends(get_session)):
    db_barber = Barber(name=barber.name)
    session.add(db_barber)
    session.commit()
    session.refresh(db_barber)
    return db_barber


@router.get("", response_model=List[BarberPublic])
def list_barbers(
    active: Optional[bool] = None,
    session: Session = Depends(get_session),
):
    stmt = select(Barber)
    if active is not None:
        stmt = stmt.where(Barber.active == active)
    return session.exec(stmt.order_by(Barber.id)).all()


@router.patch("/{barber_id}/deactivate", response_model=BarberPublic)
def deactivate_barber(barber_id: int, session: Session = Depends(get_session)):
    barber = require_barber(session, barber_id)
    barber.active = False
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@router.patch("/{barber_id}/activate", response_model=BarberPublic)
def activate_barber(barber_id: int, session: Session = Depends(get_session)):
    barber = require_barber(session, barber_id)
    barber.active = True
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@router.delete("/{barber_id}", status_code=204)
def delete_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    barber = require_barber(session, barber_id)

    # Appointments keep history; a barber who has any can only be deactivated
    has_appointments = session.exec(
        select(Appointment.id).where(Appointment.barber_id == barber_id)
    ).first()
    if has_appointments is not None:
        raise HTTPException(status_code=409, detail="Barber has appointments; deactivate instead")

    for rule in session.exec(select(PricingRule).where(PricingRule.barber_id == barber_id)).all():
        session.delete(rule)
    session.delete(barber)  # shifts, absences and blocks go with it
    session.commit()
    cache.invalidate_barber(barber_id)
    logger.info(f"Barber {barber_id} deleted")


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: date,
    service_id: int,
    granularity: Optional[int] = Query(default=None, gt=0),
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    # 1) Lookup barber and service; inactive ones have nothing bookable
    get_active_barber(session, barber_id)
    service = get_active_service(session, service_id)
    duration = service.duration_minutes

    # 2) Free intervals (cached per barber/date/duration)
    generation = cache.generation(barber_id)
    free = cache.get(barber_id, generation, date, duration)
    if free is None:
        free = compute_free_slots(session, barber_id, date, duration)
        cache.set(barber_id, generation, date, duration, free)

    # 3) Candidate start times, each priced
    step = granularity or config.SLOT_GRANULARITY_MINUTES
    rules = load_active_rules(session)
    slots = []
    for start in generate_slots(free, duration, step):
        quote = quote_price(rules, service.price, barber_id, service_id, date, from_minutes(start))
        slots.append({"time": format_minutes(start), "price": quote.final_price})

    return {
        "barber_id": barber_id,
        "date": date,
        "service_id": service_id,
        "free_intervals": [{"start": from_minutes(iv.start), "end": from_minutes(iv.end)} for iv in free],
        "slots": slots,
    }


@router.get("/{barber_id}/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    barber_id: int,
    on_date: Optional[date] = None,
    status: Optional[AppointmentStatus] = None,
    session: Session = Depends(get_session),
):
    require_barber(session, barber_id)
    return list_appointments(session, barber_id, on_date, status.value if status else None)
