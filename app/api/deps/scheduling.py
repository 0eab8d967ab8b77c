from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.repositories.sql import (
    SqlAppointmentRepository,
    SqlEmployeeDirectory,
    SqlServiceCatalog,
)
from app.schemas.calendar import BusinessCalendar
from app.services.appointment import AppointmentService
from app.services.assignment import AssignmentResolver
from app.services.availability import AvailabilityService
from app.services.capacity import CapacityEvaluator


def get_calendar() -> BusinessCalendar:
    """Business calendar in effect for the request.

    Overridden in tests to pin opening hours, capacity and blocked dates.
    """
    return settings.CALENDAR


def get_availability_service(
    db: AsyncSession = Depends(get_db),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> AvailabilityService:
    return AvailabilityService(
        calendar, SqlAppointmentRepository(db), SqlServiceCatalog(db)
    )


def get_capacity_evaluator(
    db: AsyncSession = Depends(get_db),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> CapacityEvaluator:
    return CapacityEvaluator(calendar, SqlAppointmentRepository(db))


def get_assignment_resolver(
    db: AsyncSession = Depends(get_db),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> AssignmentResolver:
    return AssignmentResolver(
        calendar, SqlAppointmentRepository(db), SqlEmployeeDirectory(db)
    )


def get_appointment_service(
    db: AsyncSession = Depends(get_db),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> AppointmentService:
    return AppointmentService(db, calendar, max_attempts=settings.BOOKING_MAX_ATTEMPTS)
