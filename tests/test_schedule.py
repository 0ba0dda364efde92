# tests/test_schedule.py

from datetime import date, time, timedelta

from booking_engine.core import Interval, day_of_week
from booking_engine.models import Shift
from booking_engine.schedule import resolve_working_windows, shifts_for_date, working_windows

from .conftest import MONDAY, MONDAY_DOW


def recurring(dow, start, end, break_start=None, break_end=None, status="active"):
    return Shift(
        barber_id=1, day_of_week=dow, start_time=start, end_time=end,
        break_start=break_start, break_end=break_end, status=status,
    )


def override(on_date, start, end, break_start=None, break_end=None):
    return Shift(
        barber_id=1, specific_date=on_date, start_time=start, end_time=end,
        break_start=break_start, break_end=break_end,
    )


def test_day_of_week_starts_on_sunday():
    assert day_of_week(MONDAY) == 1
    assert day_of_week(MONDAY - timedelta(days=1)) == 0
    assert day_of_week(MONDAY + timedelta(days=5)) == 6


def test_break_splits_shift_into_two_windows():
    shifts = [recurring(MONDAY_DOW, time(9), time(18), time(12), time(13))]
    assert working_windows(shifts, MONDAY) == [Interval(540, 720), Interval(780, 1080)]


def test_shift_without_break_is_one_window():
    shifts = [recurring(MONDAY_DOW, time(10), time(14))]
    assert working_windows(shifts, MONDAY) == [Interval(600, 840)]


def test_no_shift_is_a_day_off():
    shifts = [recurring(MONDAY_DOW + 1, time(9), time(18))]
    assert working_windows(shifts, MONDAY) == []


def test_specific_date_overrides_recurring_shift():
    shifts = [
        recurring(MONDAY_DOW, time(9), time(18), time(12), time(13)),
        override(MONDAY, time(14), time(16)),
    ]
    assert shifts_for_date(shifts, MONDAY) == [shifts[1]]
    assert working_windows(shifts, MONDAY) == [Interval(840, 960)]


def test_override_only_applies_to_its_date():
    next_monday = MONDAY + timedelta(days=7)
    shifts = [
        recurring(MONDAY_DOW, time(9), time(18)),
        override(MONDAY, time(14), time(16)),
    ]
    assert working_windows(shifts, next_monday) == [Interval(540, 1080)]


def test_inactive_shifts_are_ignored():
    shifts = [
        recurring(MONDAY_DOW, time(9), time(18), status="inactive"),
        override(MONDAY, time(14), time(16)),
    ]
    shifts[1].status = "inactive"
    assert working_windows(shifts, MONDAY) == []


def test_multiple_recurring_shifts_are_merged():
    shifts = [
        recurring(MONDAY_DOW, time(9), time(12)),
        recurring(MONDAY_DOW, time(11), time(15)),
        recurring(MONDAY_DOW, time(17), time(19)),
    ]
    assert working_windows(shifts, MONDAY) == [Interval(540, 900), Interval(1020, 1140)]


def test_resolve_from_database(session, barber, monday_shift):
    windows = resolve_working_windows(session, barber.id, MONDAY)
    assert windows == [Interval(540, 720), Interval(780, 1080)]

    tuesday = MONDAY + timedelta(days=1)
    assert resolve_working_windows(session, barber.id, tuesday) == []


def test_resolve_override_from_database(session, barber, monday_shift):
    session.add(Shift(
        barber_id=barber.id, specific_date=MONDAY,
        start_time=time(8), end_time=time(10),
    ))
    session.commit()

    assert resolve_working_windows(session, barber.id, MONDAY) == [Interval(480, 600)]
    assert resolve_working_windows(session, barber.id, date(2025, 6, 9)) == [
        Interval(540, 720), Interval(780, 1080),
    ]
