from datetime import date as date_type
from typing import List

import structlog

from app.schemas.calendar import BusinessCalendar
from app.schemas.scheduling import TimeWindow
from app.utils.exceptions import SchedulingValidationError
from app.utils.time import minutes_to_time, time_to_minutes

logger = structlog.get_logger(__name__)


class SlotGenerator:
    """Produces the candidate time windows of a business day."""

    def __init__(self, calendar: BusinessCalendar):
        self.calendar = calendar

    def generate_time_slots(
        self, date: date_type, duration_minutes: int
    ) -> List[TimeWindow]:
        """
        Candidate windows for a service of the given length on a date.

        Starts at opening time and steps by the calendar's slot granularity.
        A candidate must end by closing time and, when the lunch break is
        enabled, must not overlap it. Non-working and blocked dates have no
        candidates.

        Args:
            date: Day to generate slots for
            duration_minutes: Length of the service being booked

        Returns:
            Windows in chronological order
        """
        if duration_minutes <= 0:
            raise SchedulingValidationError(
                [f"Service duration must be positive, got {duration_minutes}"]
            )

        if not self.calendar.is_working_day(date) or self.calendar.is_blocked_date(date):
            logger.debug("No slots for closed date", date=str(date))
            return []

        opening = time_to_minutes(self.calendar.operating_hours.start)
        closing = time_to_minutes(self.calendar.operating_hours.end)
        step = self.calendar.slot_duration_minutes

        slots: List[TimeWindow] = []
        for start in range(opening, closing, step):
            start_time = minutes_to_time(start)
            if not self.calendar.fits_before_closing(start_time, duration_minutes):
                break
            if self.calendar.is_lunch_break(start_time, duration_minutes):
                continue
            slots.append(TimeWindow.from_start(start_time, duration_minutes))

        logger.debug(
            "Generated candidate slots",
            date=str(date),
            duration_minutes=duration_minutes,
            count=len(slots),
        )
        return slots
