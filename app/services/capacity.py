from datetime import date as date_type
from typing import Iterable

import structlog

from app.repositories.base import AppointmentRepository
from app.schemas.calendar import BusinessCalendar
from app.schemas.scheduling import AppointmentRecord, SlotCapacity, TimeWindow
from app.utils.exceptions import SchedulingValidationError
from app.utils.overlap import windows_overlap

logger = structlog.get_logger(__name__)


class CapacityEvaluator:
    """
    Counts how many active appointments overlap a candidate window.

    This is an advisory read: it reserves nothing. Persisting a booking must
    go through AppointmentService, which re-checks capacity under the per-day
    reservation.
    """

    def __init__(self, calendar: BusinessCalendar, appointments: AppointmentRepository):
        self.calendar = calendar
        self.appointments = appointments

    async def check_slot_capacity(
        self, date: date_type, time: str, duration_minutes: int
    ) -> SlotCapacity:
        """Capacity of [time, time + duration) on the date against current bookings."""
        records = await self.load_day(date)
        return self.evaluate(records, time, duration_minutes)

    async def load_day(self, date: date_type) -> list[AppointmentRecord]:
        """Active appointments of the date; cancelled and completed are excluded."""
        return await self.appointments.find(date, date)

    def evaluate(
        self, records: Iterable[AppointmentRecord], time: str, duration_minutes: int
    ) -> SlotCapacity:
        if duration_minutes <= 0:
            raise SchedulingValidationError(
                [f"Duration must be positive, got {duration_minutes}"]
            )

        candidate = TimeWindow.from_start(time, duration_minutes)
        default_duration = self.calendar.default_appointment_duration_minutes

        used = 0
        for record in records:
            if not record.is_active:
                continue
            try:
                window = record.effective_window(default_duration)
            except ValueError:
                logger.warning(
                    "Skipping appointment with invalid window", appointment_id=record.id
                )
                continue
            if windows_overlap(candidate, window):
                used += 1

        total = self.calendar.max_concurrent_appointments
        remaining = max(0, total - used)
        return SlotCapacity(
            is_available=remaining > 0,
            capacity_used=used,
            capacity_remaining=remaining,
            capacity_total=total,
        )
