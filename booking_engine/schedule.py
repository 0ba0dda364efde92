# booking_engine/schedule.py

from datetime import date
from typing import Iterable, List

from sqlmodel import Session, select, or_

from .core import Interval, day_of_week, interval_from_times, normalize, subtract
from .models import Shift


def shifts_for_date(shifts: Iterable[Shift], on_date: date) -> List[Shift]:
    """Pick the shifts that govern ``on_date``.

    Specific-date shifts replace the recurring weekly shift for that day
    entirely; they are never combined with it.
    """
    active = [s for s in shifts if s.status == "active"]

    overrides = [s for s in active if s.specific_date == on_date]
    if overrides:
        return overrides

    weekday = day_of_week(on_date)
    return [s for s in active if s.specific_date is None and s.day_of_week == weekday]


def shift_windows(shift: Shift) -> List[Interval]:
    window = interval_from_times(shift.start_time, shift.end_time)
    if shift.break_start is None or shift.break_end is None:
        return [window]
    return subtract(window, interval_from_times(shift.break_start, shift.break_end))


def working_windows(shifts: Iterable[Shift], on_date: date) -> List[Interval]:
    windows: List[Interval] = []
    for shift in shifts_for_date(shifts, on_date):
        windows.extend(shift_windows(shift))
    return normalize(windows)


def load_shifts(session: Session, barber_id: int, on_date: date) -> List[Shift]:
    return session.exec(
        select(Shift)
        .where(Shift.barber_id == barber_id)
        .where(or_(Shift.specific_date == on_date, Shift.day_of_week == day_of_week(on_date)))
    ).all()


def resolve_working_windows(session: Session, barber_id: int, on_date: date) -> List[Interval]:
    # No shift for the day means a day off: empty list, not an error.
    return working_windows(load_shifts(session, barber_id, on_date), on_date)
