# booking_engine/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from booking_engine.db import get_session
from booking_engine.deps import require_service
from booking_engine.models import Service
from booking_engine.schemas import ServiceCreate, ServicePublic

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(service: ServiceCreate, session: Session = Depends(get_session)):
    db_service = Service(**service.model_dump())
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(select(Service).where(Service.active == True).order_by(Service.name)).all()  # noqa: E712


@router.patch("/{service_id}/deactivate", response_model=ServicePublic)
def deactivate_service(service_id: int, session: Session = Depends(get_session)):
    service = require_service(session, service_id)
    service.active = False
    session.add(service)
    session.commit()
    session.refresh(service)
    return service
