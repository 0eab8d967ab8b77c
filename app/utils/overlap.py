"""
Interval overlap detection.

Every capacity, lunch-break and technician conflict check goes through
overlaps(); intervals are half-open, so a window ending exactly when
another begins does not overlap it.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.scheduling import TimeWindow


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Return True if [start_a, end_a) and [start_b, end_b) intersect."""
    return start_a < end_b and start_b < end_a


def windows_overlap(first: "TimeWindow", second: "TimeWindow") -> bool:
    return overlaps(
        first.start_minutes, first.end_minutes, second.start_minutes, second.end_minutes
    )
