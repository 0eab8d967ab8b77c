"""Clock-time helpers for "HH:MM" strings on a single business day."""

import re
from typing import Tuple

from app.utils.exceptions import SchedulingValidationError, TimeFormatError

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(
    r"^\s*(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*"
    r"(?P<meridiem>[AaPp]\.?\s*[Mm]\.?)?\s*$"
)
_RANGE_SEPARATOR = re.compile(r"\s*(?:[-–—]|\bto\b)\s*", re.IGNORECASE)


def time_to_minutes(clock_time: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    try:
        hours_str, minutes_str = clock_time.split(":")
        if len(minutes_str) != 2:
            raise ValueError(minutes_str)
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError):
        raise TimeFormatError(str(clock_time), "expected HH:MM")

    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise TimeFormatError(clock_time, "hour or minute out of range")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to a zero-padded "HH:MM"."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes must be within [0, {MINUTES_PER_DAY}), got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes_to_time(clock_time: str, delta: int) -> str:
    """Add minutes to a clock time, wrapping past midnight.

    The result is a bare clock time; use crosses_midnight() to find out
    whether the addition rolled over into the next day.
    """
    return minutes_to_time((time_to_minutes(clock_time) + delta) % MINUTES_PER_DAY)


def crosses_midnight(clock_time: str, delta: int) -> bool:
    total = time_to_minutes(clock_time) + delta
    return total >= MINUTES_PER_DAY or total < 0


def format_time_display(clock_time: str) -> str:
    """Format "HH:MM" on a 12-hour clock, e.g. "13:30" -> "1:30 PM"."""
    total = time_to_minutes(clock_time)
    hours, minutes = divmod(total, 60)
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


def parse_clock_time(text: str) -> str:
    """Parse "09:00", "9:00 AM", "9pm" or "09:00PM" into "HH:MM"."""
    match = _CLOCK_PATTERN.match(text or "")
    if not match:
        raise TimeFormatError(text, "unrecognised clock time")

    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    meridiem = match.group("meridiem")

    if meridiem:
        if not 1 <= hour <= 12:
            raise TimeFormatError(text, "12-hour clock hour must be 1-12")
        is_pm = meridiem.lower().startswith("p")
        hour = hour % 12 + (12 if is_pm else 0)
    elif match.group("minute") is None:
        # A bare number like "9" is ambiguous without AM/PM
        raise TimeFormatError(text, "missing minutes or AM/PM")

    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise TimeFormatError(text, "hour or minute out of range")
    return minutes_to_time(hour * 60 + minute)


def parse_time_range(text: str) -> Tuple[str, str]:
    """Split a free-text range such as "09:00 AM - 11:00 AM" into two "HH:MM"."""
    if not text or not text.strip():
        raise TimeFormatError(str(text), "empty time window")

    parts = _RANGE_SEPARATOR.split(text.strip())
    if len(parts) != 2:
        raise TimeFormatError(text, "expected '<start> - <end>'")

    start, end = (parse_clock_time(part) for part in parts)
    if start == end:
        raise TimeFormatError(text, "window has zero length")
    return start, end


def calculate_multi_vehicle_duration(
    service_duration: int, vehicle_count: int, strategy: str = "sequential"
) -> int:
    """Total minutes needed to service several vehicles.

    Sequential work multiplies the duration by the vehicle count; parallel
    work (one technician per vehicle) keeps the single-vehicle duration.
    """
    if service_duration < 0:
        raise SchedulingValidationError(["Service duration cannot be negative"])
    if vehicle_count < 1:
        raise SchedulingValidationError(["Vehicle count must be at least 1"])
    if vehicle_count == 1:
        return service_duration

    if strategy == "sequential":
        return service_duration * vehicle_count
    return service_duration
