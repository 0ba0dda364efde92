# tests/conftest.py
"""
Pytest configuration and fixtures for the booking engine tests.
"""

import fnmatch
from datetime import date, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from booking_engine.cache import AvailabilityCache
from booking_engine.db import build_engine, get_session, init_db
from booking_engine.deps import get_cache
from booking_engine.main import app
from booking_engine.models import Barber, Service, Shift

# 2025-06-02 is a Monday; stored weekday convention is 0=Sunday, so Monday=1
MONDAY = date(2025, 6, 2)
MONDAY_DOW = 1


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so several threads can open their own connections."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def barber(session):
    b = Barber(name="Carlos")
    session.add(b)
    session.commit()
    session.refresh(b)
    return b


@pytest.fixture
def haircut(session):
    """30 minute service priced at 50.00."""
    s = Service(name="Haircut", duration_minutes=30, price=Decimal("50.00"))
    session.add(s)
    session.commit()
    session.refresh(s)
    return s


@pytest.fixture
def monday_shift(session, barber):
    """Recurring Monday 09:00-18:00 with a 12:00-13:00 break."""
    shift = Shift(
        barber_id=barber.id,
        day_of_week=MONDAY_DOW,
        start_time=time(9, 0),
        end_time=time(18, 0),
        break_start=time(12, 0),
        break_end=time(13, 0),
    )
    session.add(shift)
    session.commit()
    session.refresh(shift)
    return shift


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def client(engine):
    """API client bound to the test database, with caching disabled."""
    def override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_cache] = lambda: AvailabilityCache(url=None)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def cache():
    """Availability cache backed by an in-memory Redis stand-in."""
    return AvailabilityCache(client=FakeRedis())


@pytest.fixture
def cached_client(engine, cache):
    """API client that shares ``cache`` across requests."""
    def override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Redis Stand-in
# =============================================================================

class FakeRedis:
    """Just enough of the redis client API for the availability cache."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    def keys(self, pattern):
        return [k for k in self.store if fnmatch.fnmatchcase(k, pattern)]

    def delete(self, *keys):
        return sum(1 for k in keys if self.store.pop(k, None) is not None)
