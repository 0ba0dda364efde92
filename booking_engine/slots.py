# booking_engine/slots.py

from typing import Iterable, Iterator, List

from .core import Interval
from .errors import ValidationError


def iter_slots(free: Iterable[Interval], duration_minutes: int, granularity_minutes: int) -> Iterator[int]:
    for interval in free:
        start = interval.start
        while start + duration_minutes <= interval.end:
            yield start
            start += granularity_minutes


def generate_slots(free: Iterable[Interval], duration_minutes: int, granularity_minutes: int) -> List[int]:
    """Candidate start times (minutes since midnight), ascending.

    Each free interval is walked from its own start in ``granularity_minutes``
    steps; a start is kept only if the whole service fits before the
    interval ends.
    """
    if granularity_minutes <= 0:
        raise ValidationError("granularity_minutes must be positive")
    if duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")
    return sorted(iter_slots(free, duration_minutes, granularity_minutes))
