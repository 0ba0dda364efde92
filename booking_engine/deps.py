# booking_engine/deps.py

from fastapi import HTTPException
from sqlmodel import Session

from .cache import AvailabilityCache, get_availability_cache
from .models import Barber, Service


def get_cache() -> AvailabilityCache:
    return get_availability_cache()


def require_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber not found")
    return barber


def require_service(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return service
