from datetime import date
from typing import Iterable, List, Optional

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import TERMINAL_STATUSES, Appointment, AppointmentStatus
from app.models.service import Service
from app.models.user import User, UserRole
from app.schemas.scheduling import (
    AppointmentRecord,
    AppointmentTiming,
    Employee,
    ExplicitWindow,
    ScheduledTimeWithDefaultDuration,
    ServiceOffering,
    TimeWindow,
)

logger = structlog.get_logger(__name__)


def appointment_timing(appointment: Appointment) -> Optional[AppointmentTiming]:
    """Derive how an appointment occupies its day.

    Preference order: start time with explicit duration, then the free-text
    time window, then a bare start time (legacy, default duration applies).
    Returns None when nothing usable is stored.
    """
    if appointment.scheduled_time and appointment.duration_minutes:
        try:
            return ScheduledTimeWithDefaultDuration(
                scheduled_time=appointment.scheduled_time,
                duration_minutes=appointment.duration_minutes,
            )
        except ValueError:
            pass

    if appointment.time_window:
        try:
            return ExplicitWindow(window=TimeWindow.from_text(appointment.time_window))
        except ValueError:
            pass

    if appointment.scheduled_time:
        try:
            return ScheduledTimeWithDefaultDuration(
                scheduled_time=appointment.scheduled_time
            )
        except ValueError:
            pass

    return None


def appointment_to_record(appointment: Appointment) -> Optional[AppointmentRecord]:
    timing = appointment_timing(appointment)
    if timing is None:
        logger.warning(
            "Skipping appointment with unreadable time",
            appointment_id=appointment.id,
            time_window=appointment.time_window,
            scheduled_time=appointment.scheduled_time,
        )
        return None

    return AppointmentRecord(
        id=appointment.id,
        appointment_date=appointment.appointment_date,
        timing=timing,
        status=AppointmentStatus(appointment.status),
        assigned_employee_id=appointment.assigned_employee_id,
    )


class SqlAppointmentRepository:
    """Appointment reads backed by the SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(
        self,
        start_date: date,
        end_date: date,
        exclude_statuses: Iterable[AppointmentStatus] = TERMINAL_STATUSES,
        employee_id: Optional[int] = None,
    ) -> List[AppointmentRecord]:
        conditions = [
            Appointment.appointment_date >= start_date,
            Appointment.appointment_date <= end_date,
        ]
        excluded = [status.value for status in exclude_statuses]
        if excluded:
            conditions.append(Appointment.status.not_in(excluded))
        if employee_id is not None:
            conditions.append(Appointment.assigned_employee_id == employee_id)

        result = await self.db.execute(
            select(Appointment).where(and_(*conditions)).order_by(Appointment.id)
        )

        records = []
        for appointment in result.scalars().all():
            record = appointment_to_record(appointment)
            if record is not None:
                records.append(record)
        return records


class SqlEmployeeDirectory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_active(self) -> List[Employee]:
        result = await self.db.execute(
            select(User)
            .where(
                and_(
                    User.role == UserRole.EMPLOYEE.value,
                    User.is_active.is_(True),
                )
            )
            .order_by(User.id)
        )
        return [Employee.model_validate(user) for user in result.scalars().all()]


class SqlServiceCatalog:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_many(self, service_ids: Iterable[int]) -> List[ServiceOffering]:
        ids = list(dict.fromkeys(service_ids))
        if not ids:
            return []

        result = await self.db.execute(select(Service).where(Service.id.in_(ids)))
        return [ServiceOffering.model_validate(s) for s in result.scalars().all()]
