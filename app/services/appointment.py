from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus
from app.models.booking_day import BookingDay
from app.models.user import User
from app.repositories.sql import (
    SqlAppointmentRepository,
    SqlEmployeeDirectory,
    SqlServiceCatalog,
    appointment_timing,
)
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentStatusTransition,
)
from app.schemas.calendar import BusinessCalendar
from app.schemas.scheduling import Employee, TimeWindow
from app.services.assignment import AssignmentResolver
from app.services.availability import AvailabilityService
from app.services.capacity import CapacityEvaluator
from app.utils.exceptions import (
    BookingConflictError,
    EmployeeUnavailableError,
    SchedulingValidationError,
    SlotUnavailableError,
    StaleBookingDayError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class AppointmentService:
    """Booking, lookup and status changes of appointments.

    Capacity checks and technician lookups are advisory reads. Every write
    that occupies time (booking, rescheduling, assignment) only persists
    after winning the compare-and-set on the BookingDay version of each
    date it touches, so concurrent writers for the same date cannot both
    commit against the same observed state.
    """

    def __init__(
        self, db: AsyncSession, calendar: BusinessCalendar, max_attempts: int = 3
    ):
        self.db = db
        self.calendar = calendar
        self.max_attempts = max_attempts

        self.appointments = SqlAppointmentRepository(db)
        self.availability = AvailabilityService(
            calendar, self.appointments, SqlServiceCatalog(db)
        )
        self.capacity_evaluator = CapacityEvaluator(calendar, self.appointments)
        self.assignment_resolver = AssignmentResolver(
            calendar, self.appointments, SqlEmployeeDirectory(db)
        )

    def validate_appointment_time(
        self,
        appointment_date: date,
        start_time: str,
        duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> list[str]:
        """Every calendar rule the requested time breaks, as messages."""
        calendar = self.calendar
        now = now or calendar.now()
        errors = []

        if calendar.is_past_date_time(appointment_date, start_time, now):
            errors.append("Cannot book appointments in the past")
        if calendar.is_beyond_booking_window(appointment_date, now):
            errors.append(
                f"Cannot book more than {calendar.advance_booking_days} days in advance"
            )
        if not calendar.meets_minimum_notice(appointment_date, start_time, now):
            errors.append(
                f"Appointments must be booked at least "
                f"{calendar.minimum_notice_hours} hours in advance"
            )
        if not calendar.is_working_day(appointment_date):
            errors.append("Selected date is not a working day")
        if calendar.is_blocked_date(appointment_date):
            errors.append("Selected date is not available (holiday or closure)")
        if not calendar.opens_by(start_time):
            errors.append("Selected time is before opening hours")
        if calendar.is_lunch_break(start_time, duration_minutes):
            errors.append("Selected time overlaps with lunch break")
        if not calendar.fits_before_closing(start_time, duration_minutes):
            errors.append("Service duration extends beyond business hours")

        return errors

    async def book_appointment(
        self, appointment_data: AppointmentCreate, now: Optional[datetime] = None
    ) -> tuple[Appointment, Optional[Employee]]:
        """
        Create an appointment, reserving capacity and assigning a technician.

        Returns the stored appointment and the technician, if one was free.
        An appointment without a technician stays pending.

        Raises:
            SchedulingValidationError: the request breaks calendar rules
            SlotUnavailableError: the slot has no remaining capacity
            BookingConflictError: concurrent bookings kept winning the date
        """
        duration = await self.availability.calculate_duration(
            appointment_data.service_ids, appointment_data.vehicle_count
        )

        errors = self.validate_appointment_time(
            appointment_data.appointment_date, appointment_data.start_time, duration, now
        )
        if errors:
            raise SchedulingValidationError(errors)

        return await self._retry_reservation(
            appointment_data.appointment_date,
            lambda: self._reserve_once(appointment_data, duration),
        )

    async def reschedule_appointment(
        self,
        appointment_uuid,
        reschedule: AppointmentReschedule,
        now: Optional[datetime] = None,
    ) -> Optional[Appointment]:
        """
        Move a pending or confirmed appointment to another date and time.

        The appointment keeps its duration. Capacity and technician checks
        ignore the appointment itself; its technician is kept when still
        free, otherwise the first free one is assigned, and with none free
        the appointment goes back to pending.

        Raises:
            SchedulingValidationError: the appointment cannot be moved or
                the new time breaks calendar rules
            SlotUnavailableError: the new slot has no remaining capacity
            BookingConflictError: concurrent writes kept winning a date
        """
        appointment = await self.get_appointment_by_uuid(appointment_uuid)
        if not appointment:
            return None
        self._check_reschedulable(appointment)

        duration = self._occupied_minutes(appointment)
        errors = self.validate_appointment_time(
            reschedule.appointment_date, reschedule.start_time, duration, now
        )
        if errors:
            raise SchedulingValidationError(errors)

        return await self._retry_reservation(
            reschedule.appointment_date,
            lambda: self._reschedule_once(appointment, reschedule, duration),
        )

    async def assign_employee(
        self, appointment_uuid, employee_id: int
    ) -> Optional[Appointment]:
        """
        Put a technician on an appointment and confirm it.

        Raises:
            SchedulingValidationError: the user is not an active technician
                or the appointment is no longer pending or confirmed
            EmployeeUnavailableError: the technician has an overlapping
                appointment that day
            BookingConflictError: concurrent writes kept winning the date
        """
        appointment = await self.get_appointment_by_uuid(appointment_uuid)
        if not appointment:
            return None

        user = await self.db.get(User, employee_id)
        if user is None or not user.is_technician or not user.is_active:
            raise SchedulingValidationError(["Invalid employee ID"])

        return await self._retry_reservation(
            appointment.appointment_date,
            lambda: self._assign_once(appointment, employee_id),
        )

    async def _retry_reservation(
        self, day: date, reserve: Callable[[], Awaitable[T]]
    ) -> T:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await reserve()
            except StaleBookingDayError:
                await self.db.rollback()
                logger.warning(
                    "Booking day changed during reservation, retrying",
                    date=str(day),
                    attempt=attempt,
                )

        raise BookingConflictError(day, self.max_attempts)

    async def _reserve_once(
        self, appointment_data: AppointmentCreate, duration: int
    ) -> tuple[Appointment, Optional[Employee]]:
        day = appointment_data.appointment_date
        start_time = appointment_data.start_time

        version = await self._read_day_version(day)

        records = await self.capacity_evaluator.load_day(day)
        capacity = self.capacity_evaluator.evaluate(records, start_time, duration)
        if not capacity.is_available:
            await self.db.rollback()
            raise SlotUnavailableError(day, start_time, capacity.capacity_total)

        window = TimeWindow.from_start(start_time, duration)
        employee = await self.assignment_resolver.find_available_employee(day, window)

        appointment = Appointment(
            customer_name=appointment_data.customer_name,
            customer_phone=appointment_data.customer_phone,
            customer_email=appointment_data.customer_email,
            vehicle_number=appointment_data.vehicle_number,
            vehicle_count=appointment_data.vehicle_count,
            service_ids=list(appointment_data.service_ids),
            appointment_date=day,
            scheduled_time=start_time,
            duration_minutes=duration,
            time_window=window.display(),
            assigned_employee_id=employee.id if employee else None,
            status=(
                AppointmentStatus.CONFIRMED.value
                if employee
                else AppointmentStatus.PENDING.value
            ),
            notes=appointment_data.notes,
        )
        self.db.add(appointment)
        await self.db.flush()

        await self._claim_day(day, version)
        await self.db.commit()
        await self.db.refresh(appointment)

        logger.info(
            "Appointment booked",
            appointment_id=appointment.id,
            date=str(day),
            window=window.display(),
            employee_id=appointment.assigned_employee_id,
            capacity_used=capacity.capacity_used + 1,
            capacity_total=capacity.capacity_total,
        )
        return appointment, employee

    async def _reschedule_once(
        self, appointment: Appointment, reschedule: AppointmentReschedule, duration: int
    ) -> Appointment:
        # A retry follows a rollback, which expired the instance
        await self.db.refresh(appointment)
        self._check_reschedulable(appointment)

        old_date = appointment.appointment_date
        new_date = reschedule.appointment_date
        start_time = reschedule.start_time

        # Dates are always read and claimed in ascending order
        days = sorted({old_date, new_date})
        versions = {day: await self._read_day_version(day) for day in days}

        records = [
            record
            for record in await self.capacity_evaluator.load_day(new_date)
            if record.id != appointment.id
        ]
        capacity = self.capacity_evaluator.evaluate(records, start_time, duration)
        if not capacity.is_available:
            await self.db.rollback()
            raise SlotUnavailableError(new_date, start_time, capacity.capacity_total)

        window = TimeWindow.from_start(start_time, duration)
        employee = await self.assignment_resolver.find_available_employee(
            new_date,
            window,
            exclude_appointment_id=appointment.id,
            preferred_employee_id=appointment.assigned_employee_id,
        )

        previous_window = appointment.time_window
        appointment.appointment_date = new_date
        appointment.scheduled_time = start_time
        appointment.duration_minutes = duration
        appointment.time_window = window.display()
        appointment.assigned_employee_id = employee.id if employee else None
        self._set_status(
            appointment,
            AppointmentStatus.CONFIRMED if employee else AppointmentStatus.PENDING,
        )
        await self.db.flush()

        for day in days:
            await self._claim_day(day, versions[day])
        await self.db.commit()
        await self.db.refresh(appointment)

        logger.info(
            "Appointment rescheduled",
            appointment_id=appointment.id,
            from_date=str(old_date),
            from_window=previous_window,
            date=str(new_date),
            window=window.display(),
            employee_id=appointment.assigned_employee_id,
        )
        return appointment

    async def _assign_once(
        self, appointment: Appointment, employee_id: int
    ) -> Appointment:
        await self.db.refresh(appointment)
        if not appointment.can_be_rescheduled():
            raise SchedulingValidationError(
                [f"Cannot assign an employee to a {appointment.status} appointment"]
            )

        day = appointment.appointment_date
        window = self._occupied_window(appointment)
        version = await self._read_day_version(day)

        records = await self.appointments.find(day, day, employee_id=employee_id)
        records = [record for record in records if record.id != appointment.id]
        if self.assignment_resolver.has_conflict(records, window):
            await self.db.rollback()
            raise EmployeeUnavailableError(employee_id, day, window.display())

        appointment.assigned_employee_id = employee_id
        self._set_status(appointment, AppointmentStatus.CONFIRMED)
        await self.db.flush()

        await self._claim_day(day, version)
        await self.db.commit()
        await self.db.refresh(appointment)

        logger.info(
            "Employee assigned",
            appointment_id=appointment.id,
            employee_id=employee_id,
            date=str(day),
            window=window.display(),
        )
        return appointment

    def _check_reschedulable(self, appointment: Appointment) -> None:
        if not appointment.can_be_rescheduled():
            raise SchedulingValidationError(["This appointment cannot be rescheduled"])

    def _occupied_window(self, appointment: Appointment) -> TimeWindow:
        default_duration = self.calendar.default_appointment_duration_minutes
        timing = appointment_timing(appointment)
        if timing is None:
            raise SchedulingValidationError(["Appointment has no readable time"])
        return timing.resolve(default_duration)

    def _occupied_minutes(self, appointment: Appointment) -> int:
        timing = appointment_timing(appointment)
        if timing is None:
            return self.calendar.default_appointment_duration_minutes
        return timing.resolve(
            self.calendar.default_appointment_duration_minutes
        ).duration_minutes

    @staticmethod
    def _set_status(appointment: Appointment, status: AppointmentStatus) -> None:
        if appointment.status == status.value:
            return
        appointment.previous_status = appointment.status
        appointment.status = status.value
        appointment.status_changed_at = datetime.now(timezone.utc)

    async def _read_day_version(self, day: date) -> int:
        result = await self.db.execute(
            select(BookingDay.version).where(BookingDay.day == day)
        )
        version = result.scalar_one_or_none()
        if version is not None:
            return version

        self.db.add(BookingDay(day=day, version=0))
        try:
            await self.db.flush()
        except IntegrityError:
            # Another booking created the row first
            raise StaleBookingDayError(day)
        return 0

    async def _claim_day(self, day: date, version: int) -> None:
        result = await self.db.execute(
            update(BookingDay)
            .where(and_(BookingDay.day == day, BookingDay.version == version))
            .values(version=version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleBookingDayError(day)

    async def get_appointment_by_uuid(self, appointment_uuid) -> Optional[Appointment]:
        result = await self.db.execute(
            select(Appointment).where(Appointment.uuid == appointment_uuid)
        )
        return result.scalar_one_or_none()

    async def transition_appointment_status(
        self, appointment_uuid, transition: AppointmentStatusTransition
    ) -> Optional[Appointment]:
        """Move an appointment along pending -> confirmed -> in-service -> completed."""
        appointment = await self.get_appointment_by_uuid(appointment_uuid)
        if not appointment:
            return None

        if not appointment.can_transition_to(transition.new_status):
            raise SchedulingValidationError(
                [
                    f"Cannot transition from {appointment.status} to "
                    f"{transition.new_status.value}"
                ]
            )

        appointment.transition_to(transition.new_status, transition.reason)
        await self.db.commit()
        await self.db.refresh(appointment)

        logger.info(
            "Appointment status changed",
            appointment_id=appointment.id,
            previous_status=appointment.previous_status,
            status=appointment.status,
        )
        return appointment
