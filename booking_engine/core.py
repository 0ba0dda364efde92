# booking_engine/core.py
"""
Interval arithmetic shared by the schedule, availability and slot modules.

Times of day are handled as integer minutes since midnight so that
subtraction is exact; conversion to ``datetime.time`` happens only at the
edges.
"""

from datetime import date, time
from typing import Iterable, List, NamedTuple

MINUTES_PER_DAY = 24 * 60


class Interval(NamedTuple):
    """Half-open ``[start, end)`` in minutes since midnight."""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    return start_a < end_b and start_b < end_a


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    # 24:00 is the end of the day; time() cannot represent it.
    if minutes >= MINUTES_PER_DAY:
        return time(23, 59)
    return time(minutes // 60, minutes % 60)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(d: date) -> int:
    """Weekday with 0=Sunday ... 6=Saturday, the stored shift/rule convention."""
    return (d.weekday() + 1) % 7


def interval_from_times(start: time, end: time) -> Interval:
    return Interval(to_minutes(start), to_minutes(end))


def normalize(intervals: Iterable[Interval]) -> List[Interval]:
    """Sort, drop empty intervals and merge overlapping or touching ones."""
    merged: List[Interval] = []
    for iv in sorted(i for i in intervals if i.end > i.start):
        if merged and iv.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(last.start, max(last.end, iv.end))
        else:
            merged.append(iv)
    return merged


def subtract(window: Interval, cut: Interval) -> List[Interval]:
    """``window`` minus ``cut``: zero, one or two remaining pieces."""
    if not overlaps(window.start, window.end, cut.start, cut.end):
        return [window]
    pieces = []
    if cut.start > window.start:
        pieces.append(Interval(window.start, cut.start))
    if cut.end < window.end:
        pieces.append(Interval(cut.end, window.end))
    return pieces


def subtract_all(windows: Iterable[Interval], cuts: Iterable[Interval]) -> List[Interval]:
    remaining = list(windows)
    for cut in cuts:
        next_remaining = []
        for window in remaining:
            next_remaining.extend(subtract(window, cut))
        remaining = next_remaining
    return normalize(remaining)


def contains(window: Interval, inner: Interval) -> bool:
    return window.start <= inner.start and inner.end <= window.end
