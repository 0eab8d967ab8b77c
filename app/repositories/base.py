"""
Collaborator interfaces consumed by the scheduling services.

The services never query storage directly; they receive objects satisfying
these protocols, which keeps them testable with in-memory fakes.
"""

from datetime import date
from typing import Iterable, List, Optional, Protocol

from app.models.appointment import TERMINAL_STATUSES, AppointmentStatus
from app.schemas.scheduling import AppointmentRecord, Employee, ServiceOffering


class AppointmentRepository(Protocol):
    async def find(
        self,
        start_date: date,
        end_date: date,
        exclude_statuses: Iterable[AppointmentStatus] = TERMINAL_STATUSES,
        employee_id: Optional[int] = None,
    ) -> List[AppointmentRecord]:
        """Appointments dated within [start_date, end_date], oldest id first."""
        ...


class EmployeeDirectory(Protocol):
    async def find_active(self) -> List[Employee]:
        """Active users with the employee role, in assignment order."""
        ...


class ServiceCatalog(Protocol):
    async def get_many(self, service_ids: Iterable[int]) -> List[ServiceOffering]:
        ...
