# tests/test_booking.py

import threading
from datetime import time
from decimal import Decimal

import pytest
from sqlmodel import Session, select

from booking_engine import booking
from booking_engine.booking import (
    _lock_for,
    barber_day_lock,
    cancel_appointment,
    claim_buckets,
    create_appointment,
    list_appointments,
    update_status,
)
from booking_engine.core import Interval
from booking_engine.errors import ConflictError, NotFoundError, PreconditionError, ValidationError
from booking_engine.models import Absence, Appointment, AppointmentSlot, BlockedSlot, PricingRule

from .conftest import MONDAY


def book(session, barber, service, at, **kwargs):
    return create_appointment(session, barber.id, 42, service.id, MONDAY, at, **kwargs)


class TestCreateAppointment:

    def test_books_free_slot_as_pending(self, session, barber, haircut, monday_shift):
        appt = book(session, barber, haircut, time(10))

        assert appt.id is not None
        assert appt.status == "pending"
        assert appt.duration_minutes == 30
        assert appt.total_price == Decimal("50.00")

        claims = session.exec(select(AppointmentSlot).where(AppointmentSlot.appointment_id == appt.id)).all()
        assert sorted(c.bucket for c in claims) == list(range(600, 630))

    def test_created_at_is_timezone_aware(self, session, barber, haircut, monday_shift):
        assert Appointment(
            barber_id=1, client_id=1, service_id=1, appointment_date=MONDAY,
            appointment_time=time(10), duration_minutes=30, total_price=Decimal("50.00"),
        ).created_at.tzinfo is not None

        appt = book(session, barber, haircut, time(10))
        assert appt.id is not None
        assert appt.created_at is not None

    def test_rejects_time_with_seconds(self, session, barber, haircut, monday_shift):
        with pytest.raises(ValidationError):
            book(session, barber, haircut, time(10, 0, 30))
        assert list_appointments(session, barber.id, MONDAY) == []

    def test_confirmed_on_request(self, session, barber, haircut, monday_shift):
        assert book(session, barber, haircut, time(10), status="confirmed").status == "confirmed"

    def test_rejects_other_initial_status(self, session, barber, haircut, monday_shift):
        with pytest.raises(ValidationError):
            book(session, barber, haircut, time(10), status="completed")

    def test_price_is_snapshotted(self, session, barber, haircut, monday_shift):
        rule = PricingRule(
            name="Happy Hour", rule_type="time_based", start_time=time(14), end_time=time(16),
            price_modifier_type="percentage", price_modifier_value=Decimal("-20"), priority=5,
        )
        session.add(rule)
        session.commit()

        appt = book(session, barber, haircut, time(15))
        assert appt.total_price == Decimal("40.00")

        rule.active = False
        session.add(rule)
        session.commit()
        session.refresh(appt)
        assert appt.total_price == Decimal("40.00")

    def test_overlapping_request_conflicts(self, session, barber, haircut, monday_shift):
        book(session, barber, haircut, time(10))
        with pytest.raises(ConflictError):
            book(session, barber, haircut, time(10, 15))

    def test_adjacent_requests_both_succeed(self, session, barber, haircut, monday_shift):
        book(session, barber, haircut, time(10))
        book(session, barber, haircut, time(10, 30))
        assert len(list_appointments(session, barber.id, MONDAY)) == 2

    def test_outside_working_hours_conflicts(self, session, barber, haircut, monday_shift):
        with pytest.raises(ConflictError):
            book(session, barber, haircut, time(11, 45))  # runs into the lunch break
        with pytest.raises(ConflictError):
            book(session, barber, haircut, time(17, 45))  # runs past closing

    def test_blocked_slot_conflicts(self, session, barber, haircut, monday_shift):
        session.add(BlockedSlot(barber_id=barber.id, date=MONDAY, start_time=time(15), end_time=time(16)))
        session.commit()
        with pytest.raises(ConflictError):
            book(session, barber, haircut, time(15, 30))

    def test_absence_conflicts(self, session, barber, haircut, monday_shift):
        session.add(Absence(barber_id=barber.id, start_date=MONDAY, end_date=MONDAY, type="sick"))
        session.commit()
        with pytest.raises(ConflictError):
            book(session, barber, haircut, time(9))

    def test_inactive_barber_is_a_precondition_failure(self, session, barber, haircut, monday_shift):
        barber.active = False
        session.add(barber)
        session.commit()
        with pytest.raises(PreconditionError):
            book(session, barber, haircut, time(9))

    def test_inactive_service_is_a_precondition_failure(self, session, barber, haircut, monday_shift):
        haircut.active = False
        session.add(haircut)
        session.commit()
        with pytest.raises(PreconditionError):
            book(session, barber, haircut, time(9))

    def test_unknown_barber(self, session, haircut):
        with pytest.raises(NotFoundError):
            create_appointment(session, 999, 1, haircut.id, MONDAY, time(9))


class TestConcurrentBooking:

    def test_simultaneous_requests_grant_exactly_one(self, engine, barber, haircut, monday_shift):
        barber_id, service_id = barber.id, haircut.id
        barrier = threading.Barrier(2)
        results = []

        def attempt():
            with Session(engine) as s:
                barrier.wait()
                try:
                    appt = create_appointment(s, barber_id, 42, service_id, MONDAY, time(10))
                    results.append(("ok", appt.id))
                except ConflictError:
                    results.append(("conflict", None))

        threads = [threading.Thread(target=attempt) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r[0] for r in results) == ["conflict", "ok"]
        with Session(engine) as s:
            assert len(list_appointments(s, barber_id, MONDAY)) == 1

    def test_storage_constraint_rejects_overlap_when_check_is_bypassed(
        self, session, barber, haircut, monday_shift, monkeypatch
    ):
        book(session, barber, haircut, time(10))

        # Pretend the availability check saw the whole day free
        monkeypatch.setattr(booking, "compute_free_slots", lambda *args, **kwargs: [Interval(0, 1439)])
        with pytest.raises(ConflictError):
            book(session, barber, haircut, time(10, 15))

        remaining = session.exec(select(Appointment).where(Appointment.barber_id == barber.id)).all()
        assert len(remaining) == 1

    def test_lock_timeout_surfaces_as_conflict(self, barber):
        lock = _lock_for(barber.id, MONDAY)
        lock.acquire()
        try:
            with pytest.raises(ConflictError):
                with barber_day_lock(barber.id, MONDAY, timeout=0.01):
                    pass
        finally:
            lock.release()


class TestStatusChanges:

    def test_cancellation_frees_the_slot(self, session, barber, haircut, monday_shift):
        appt = book(session, barber, haircut, time(10))
        cancelled = cancel_appointment(session, appt.id)
        assert cancelled.status == "cancelled"

        claims = session.exec(select(AppointmentSlot).where(AppointmentSlot.appointment_id == appt.id)).all()
        assert claims == []
        assert book(session, barber, haircut, time(10)).status == "pending"

    def test_cancelling_twice_conflicts(self, session, barber, haircut, monday_shift):
        appt = book(session, barber, haircut, time(10))
        cancel_appointment(session, appt.id)
        with pytest.raises(ConflictError):
            cancel_appointment(session, appt.id)

    def test_pending_confirmed_completed(self, session, barber, haircut, monday_shift):
        appt = book(session, barber, haircut, time(10))
        assert update_status(session, appt.id, "confirmed").status == "confirmed"
        assert update_status(session, appt.id, "completed").status == "completed"

    @pytest.mark.parametrize("path", [
        ["completed"],                  # pending cannot skip confirmation
        ["confirmed", "pending"],       # no going back
        ["confirmed", "completed", "cancelled"],  # completed is terminal
    ])
    def test_illegal_transitions_conflict(self, session, barber, haircut, monday_shift, path):
        appt = book(session, barber, haircut, time(10))
        for status in path[:-1]:
            update_status(session, appt.id, status)
        with pytest.raises(ConflictError):
            update_status(session, appt.id, path[-1])

    def test_unknown_appointment(self, session):
        with pytest.raises(NotFoundError):
            cancel_appointment(session, 12345)


def test_list_appointments_filters(session, barber, haircut, monday_shift):
    first = book(session, barber, haircut, time(9))
    book(session, barber, haircut, time(11))
    cancel_appointment(session, first.id)

    assert [a.appointment_time for a in list_appointments(session, barber.id, MONDAY)] == [time(9), time(11)]
    assert [a.id for a in list_appointments(session, barber.id, status="cancelled")] == [first.id]


@pytest.mark.parametrize("start,duration,size,expected", [
    (600, 30, 1, list(range(600, 630))),
    (600, 30, 15, [600, 615]),
    (607, 20, 15, [600, 615]),
])
def test_claim_buckets(start, duration, size, expected):
    assert claim_buckets(start, duration, size) == expected
