from datetime import date as date_type
from typing import Iterable, Optional, Union

import structlog

from app.repositories.base import AppointmentRepository, EmployeeDirectory
from app.schemas.calendar import BusinessCalendar
from app.schemas.scheduling import AppointmentRecord, Employee, TimeWindow
from app.utils.overlap import windows_overlap

logger = structlog.get_logger(__name__)


class AssignmentResolver:
    """
    Picks a technician for a requested window.

    First fit: active technicians are tried in directory order and the first
    one without an overlapping active appointment that day wins. No load
    balancing is attempted.
    """

    def __init__(
        self,
        calendar: BusinessCalendar,
        appointments: AppointmentRepository,
        employees: EmployeeDirectory,
    ):
        self.calendar = calendar
        self.appointments = appointments
        self.employees = employees

    async def find_available_employee(
        self,
        date: date_type,
        time_window: Union[str, TimeWindow],
        exclude_appointment_id: Optional[int] = None,
        preferred_employee_id: Optional[int] = None,
    ) -> Optional[Employee]:
        """
        Return the first free technician, or None.

        ``time_window`` may be free text such as "09:00 AM - 11:00 AM". An
        unparseable window skips assignment and returns None; so does a day
        on which every technician is busy. Neither case is an error: the
        appointment simply stays unassigned.

        ``exclude_appointment_id`` leaves an appointment out of the conflict
        check, so a rescheduled booking does not collide with itself.
        ``preferred_employee_id`` is tried first when active.
        """
        window = self._parse_window(time_window)
        if window is None:
            return None

        employees = await self.employees.find_active()
        if preferred_employee_id is not None:
            employees.sort(key=lambda employee: employee.id != preferred_employee_id)

        for employee in employees:
            records = await self.appointments.find(date, date, employee_id=employee.id)
            if exclude_appointment_id is not None:
                records = [r for r in records if r.id != exclude_appointment_id]
            if not self.has_conflict(records, window):
                logger.info(
                    "Technician available",
                    employee_id=employee.id,
                    date=str(date),
                    window=window.display(),
                )
                return employee

        logger.info(
            "No technician available",
            date=str(date),
            window=window.display(),
            candidates=len(employees),
        )
        return None

    def has_conflict(self, records: Iterable[AppointmentRecord], window: TimeWindow) -> bool:
        default_duration = self.calendar.default_appointment_duration_minutes
        for record in records:
            if not record.is_active:
                continue
            try:
                existing = record.effective_window(default_duration)
            except ValueError:
                logger.warning(
                    "Ignoring appointment with invalid window", appointment_id=record.id
                )
                continue
            if windows_overlap(window, existing):
                return True
        return False

    @staticmethod
    def _parse_window(time_window: Union[str, TimeWindow]) -> Optional[TimeWindow]:
        if isinstance(time_window, TimeWindow):
            return time_window
        try:
            return TimeWindow.from_text(time_window)
        except ValueError as e:
            logger.warning(
                "Could not parse time window, skipping assignment",
                time_window=time_window,
                error=str(e),
            )
            return None
