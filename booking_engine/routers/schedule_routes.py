# booking_engine/routers/schedule_routes.py
#
# Admin CRUD for the data availability is computed from. Every write drops
# the barber's cached availability.

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from booking_engine.cache import AvailabilityCache
from booking_engine.db import get_session
from booking_engine.deps import get_cache, require_barber
from booking_engine.models import Absence, BlockedSlot, Shift
from booking_engine.schemas import (
    AbsenceCreate,
    AbsencePublic,
    BlockedSlotCreate,
    BlockedSlotPublic,
    ShiftCreate,
    ShiftPublic,
    ShiftStatus,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["schedule"],
)


# ---- shifts ----

@router.post("/shifts", response_model=ShiftPublic, status_code=201)
def create_shift(
    shift: ShiftCreate,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    require_barber(session, shift.barber_id)

    db_shift = Shift(**shift.model_dump(exclude={"status"}), status=shift.status.value)
    session.add(db_shift)
    session.commit()
    session.refresh(db_shift)
    cache.invalidate_barber(db_shift.barber_id)
    return db_shift


@router.get("/shifts", response_model=List[ShiftPublic])
def list_shifts(barber_id: int, session: Session = Depends(get_session)):
    return session.exec(
        select(Shift).where(Shift.barber_id == barber_id).order_by(Shift.day_of_week, Shift.specific_date)
    ).all()


@router.patch("/shifts/{shift_id}/status", response_model=ShiftPublic)
def set_shift_status(
    shift_id: int,
    status: ShiftStatus,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    db_shift = session.get(Shift, shift_id)
    if db_shift is None:
        raise HTTPException(status_code=404, detail="Shift not found")
    db_shift.status = status.value
    session.add(db_shift)
    session.commit()
    session.refresh(db_shift)
    cache.invalidate_barber(db_shift.barber_id)
    return db_shift


@router.delete("/shifts/{shift_id}", status_code=204)
def delete_shift(
    shift_id: int,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    db_shift = session.get(Shift, shift_id)
    if db_shift is None:
        raise HTTPException(status_code=404, detail="Shift not found")
    barber_id = db_shift.barber_id
    session.delete(db_shift)
    session.commit()
    cache.invalidate_barber(barber_id)


# ---- absences ----

@router.post("/absences", response_model=AbsencePublic, status_code=201)
def create_absence(
    absence: AbsenceCreate,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    require_barber(session, absence.barber_id)
    db_absence = Absence(**absence.model_dump(exclude={"type"}), type=absence.type.value)
    session.add(db_absence)
    session.commit()
    session.refresh(db_absence)
    cache.invalidate_barber(db_absence.barber_id)
    logger.info(
        f"Absence recorded for barber {db_absence.barber_id}: {db_absence.start_date} - {db_absence.end_date}"
    )
    return db_absence


@router.get("/absences", response_model=List[AbsencePublic])
def list_absences(barber_id: int, session: Session = Depends(get_session)):
    return session.exec(
        select(Absence).where(Absence.barber_id == barber_id).order_by(Absence.start_date.desc())
    ).all()


@router.delete("/absences/{absence_id}", status_code=204)
def delete_absence(
    absence_id: int,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    db_absence = session.get(Absence, absence_id)
    if db_absence is None:
        raise HTTPException(status_code=404, detail="Absence not found")
    barber_id = db_absence.barber_id
    session.delete(db_absence)
    session.commit()
    cache.invalidate_barber(barber_id)


# ---- blocked slots ----

@router.post("/blocked-slots", response_model=BlockedSlotPublic, status_code=201)
def create_blocked_slot(
    block: BlockedSlotCreate,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    require_barber(session, block.barber_id)
    db_block = BlockedSlot(**block.model_dump())
    session.add(db_block)
    session.commit()
    session.refresh(db_block)
    cache.invalidate_barber(db_block.barber_id)
    return db_block


@router.get("/blocked-slots", response_model=List[BlockedSlotPublic])
def list_blocked_slots(
    barber_id: int,
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
):
    stmt = select(BlockedSlot).where(BlockedSlot.barber_id == barber_id)
    if on_date is not None:
        stmt = stmt.where(BlockedSlot.date == on_date)
    return session.exec(stmt.order_by(BlockedSlot.date, BlockedSlot.start_time)).all()


@router.delete("/blocked-slots/{block_id}", status_code=204)
def delete_blocked_slot(
    block_id: int,
    session: Session = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    db_block = session.get(BlockedSlot, block_id)
    if db_block is None:
        raise HTTPException(status_code=404, detail="Blocked slot not found")
    barber_id = db_block.barber_id
    session.delete(db_block)
    session.commit()
    cache.invalidate_barber(barber_id)
