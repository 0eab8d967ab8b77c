from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Import enums from the model to avoid duplication
from app.models.appointment import AppointmentStatus
from app.schemas.scheduling import Employee
from app.utils.time import parse_clock_time


class AppointmentCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=50)
    customer_email: Optional[str] = Field(None, max_length=255)
    vehicle_number: Optional[str] = Field(None, max_length=20)
    vehicle_count: int = Field(1, ge=1)
    service_ids: List[int] = Field(..., min_length=1)
    appointment_date: date
    start_time: str
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: str) -> str:
        """Accept "09:00" or "9:00 AM"; store "HH:MM"."""
        return parse_clock_time(v)

    @field_validator("vehicle_number")
    @classmethod
    def normalize_vehicle_number(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class AppointmentStatusTransition(BaseModel):
    new_status: AppointmentStatus
    reason: Optional[str] = None


# Response schemas
class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    customer_name: str
    vehicle_number: Optional[str] = None
    vehicle_count: int
    service_ids: List[int]
    appointment_date: date
    scheduled_time: Optional[str] = None
    time_window: Optional[str] = None
    duration_minutes: Optional[int] = None
    status: AppointmentStatus
    assigned_employee_id: Optional[int] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingResponse(BaseModel):
    success: bool = True
    message: str
    appointment: AppointmentResponse
    employee: Optional[Employee] = None


class AppointmentReschedule(BaseModel):
    appointment_date: date
    start_time: str

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: str) -> str:
        return parse_clock_time(v)


class EmployeeAssignment(BaseModel):
    employee_id: int
