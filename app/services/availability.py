from datetime import date as date_type, datetime
from typing import Optional, Sequence

import structlog

from app.repositories.base import AppointmentRepository, ServiceCatalog
from app.schemas.calendar import BusinessCalendar
from app.schemas.scheduling import AvailableSlots, SlotSummary, TimeSlot
from app.services.capacity import CapacityEvaluator
from app.services.slots import SlotGenerator
from app.utils.exceptions import SchedulingValidationError
from app.utils.time import format_time_display

logger = structlog.get_logger(__name__)


class AvailabilityService:
    """Bookable slots of a date for a set of services and vehicles."""

    def __init__(
        self,
        calendar: BusinessCalendar,
        appointments: AppointmentRepository,
        services: ServiceCatalog,
    ):
        self.calendar = calendar
        self.services = services
        self.slot_generator = SlotGenerator(calendar)
        self.capacity_evaluator = CapacityEvaluator(calendar, appointments)

    async def get_available_slots(
        self,
        date: Optional[date_type],
        service_ids: Sequence[int],
        vehicle_count: int = 1,
        now: Optional[datetime] = None,
    ) -> AvailableSlots:
        """
        List the slots a customer can choose for the requested work.

        Past dates and dates beyond the booking window are rejected. Closed
        dates yield an empty list with an explanatory message. Each candidate
        is checked for minimum notice and remaining capacity; fully booked
        candidates are left out of the list but counted in the summary.

        Raises:
            SchedulingValidationError: for a missing or out-of-range date,
                unknown or inactive services, or a non-positive vehicle count
        """
        if date is None:
            raise SchedulingValidationError(["Date is required"])

        now = now or self.calendar.now()
        self._check_bookable_date(date, now)

        if not self.calendar.is_working_day(date):
            return AvailableSlots(date=date, message="Selected date is not a working day")
        if self.calendar.is_blocked_date(date):
            return AvailableSlots(
                date=date, message="Selected date is not available (holiday or closure)"
            )

        duration = await self.calculate_duration(service_ids, vehicle_count)

        candidates = self.slot_generator.generate_time_slots(date, duration)
        records = await self.capacity_evaluator.load_day(date)

        slots = []
        summary = SlotSummary()
        for window in candidates:
            if not self.calendar.meets_minimum_notice(date, window.start_time, now):
                continue

            capacity = self.capacity_evaluator.evaluate(
                records, window.start_time, duration
            )
            if capacity.capacity_remaining == 0:
                summary.fully_booked += 1
                continue
            if capacity.capacity_remaining == 1:
                summary.limited_available += 1
            else:
                summary.fully_available += 1

            slots.append(
                TimeSlot(
                    start_time=window.start_time,
                    end_time=window.end_time,
                    display_start=format_time_display(window.start_time),
                    display_end=format_time_display(window.end_time),
                    capacity_used=capacity.capacity_used,
                    capacity_total=capacity.capacity_total,
                    capacity_remaining=capacity.capacity_remaining,
                    is_available=capacity.is_available,
                )
            )

        logger.info(
            "Computed available slots",
            date=str(date),
            duration_minutes=duration,
            vehicle_count=vehicle_count,
            available=len(slots),
            fully_booked=summary.fully_booked,
            checked=summary.total,
        )

        message = None if slots else "No available time slots for the selected date"
        return AvailableSlots(
            date=date,
            slots=slots,
            summary=summary,
            duration_minutes=duration,
            message=message,
        )

    async def calculate_duration(
        self, service_ids: Sequence[int], vehicle_count: int
    ) -> int:
        """Minutes needed for the selected services across all vehicles."""
        if vehicle_count < 1:
            raise SchedulingValidationError(["Vehicle count must be at least 1"])
        if not service_ids:
            raise SchedulingValidationError(["No services selected"])

        requested = set(service_ids)
        services = await self.services.get_many(requested)
        active = [service for service in services if service.is_active]
        if len(active) != len(requested):
            raise SchedulingValidationError(["One or more services not found or inactive"])

        base_duration = sum(service.estimated_duration_minutes for service in active)
        if base_duration <= 0:
            raise SchedulingValidationError(["Selected services have no duration"])

        return self.calendar.multi_vehicle_duration(base_duration, vehicle_count)

    def _check_bookable_date(self, date: date_type, now: datetime) -> None:
        # Today stays open; its elapsed slots are dropped by the notice check
        if self.calendar.is_past_date_time(date, "23:59", now):
            raise SchedulingValidationError(["Cannot book appointments in the past"])
        if self.calendar.is_beyond_booking_window(date, now):
            raise SchedulingValidationError(
                [
                    f"Cannot book more than {self.calendar.advance_booking_days} "
                    "days in advance"
                ]
            )
