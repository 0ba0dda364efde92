# booking_engine/errors.py
"""
Errors raised by the availability and booking engine.

The HTTP layer maps each kind onto a status code (see ``main.py``); the
engine itself never knows about HTTP.
"""


class BookingEngineError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookingEngineError):
    """Malformed entity rejected at write time."""
    status_code = 422


class NotFoundError(BookingEngineError):
    status_code = 404


class PreconditionError(BookingEngineError):
    """Booking rejected before availability runs (inactive barber or service)."""
    status_code = 400


class ConflictError(BookingEngineError):
    """The requested slot is no longer free. Callers refresh and pick again."""
    status_code = 409
