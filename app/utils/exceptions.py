from typing import List, Optional


class SchedulingError(Exception):
    """Base class for appointment scheduling failures."""


class SchedulingValidationError(SchedulingError):
    """Raised when a scheduling request fails validation.

    Carries every human-readable reason so callers can report them all at once.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))

    @property
    def message(self) -> str:
        return self.errors[0] if len(self.errors) == 1 else "; ".join(self.errors)


class TimeFormatError(ValueError):
    """Raised when a clock time or time window string cannot be parsed."""

    def __init__(self, value: str, reason: Optional[str] = None):
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid time format '{value}'{detail}")


class SlotUnavailableError(SchedulingError):
    """Raised when a booking targets a slot with no remaining capacity."""

    def __init__(self, date, start_time: str, capacity_total: int):
        self.date = date
        self.start_time = start_time
        self.capacity_total = capacity_total
        super().__init__("Selected time slot is fully booked")


class BookingConflictError(SchedulingError):
    """Raised when a reservation keeps losing the same-day version race."""

    def __init__(self, date, attempts: int):
        self.date = date
        self.attempts = attempts
        super().__init__(
            f"Could not reserve a slot on {date} after {attempts} attempts, "
            "please try again"
        )


class StaleBookingDayError(SchedulingError):
    """Raised internally when the day's version changed under a reservation."""


class EmployeeUnavailableError(SchedulingError):
    """Raised when a technician already works on an overlapping appointment."""

    def __init__(self, employee_id: int, date, window: str):
        self.employee_id = employee_id
        self.date = date
        self.window = window
        super().__init__("Employee has a conflicting appointment at this time")
