from datetime import date as date_type
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.appointment import AppointmentStatus
from app.utils.time import (
    MINUTES_PER_DAY,
    add_minutes_to_time,
    crosses_midnight,
    format_time_display,
    parse_time_range,
    time_to_minutes,
)


class TimeWindow(BaseModel):
    """A start/end clock-time pair on a single date.

    Invariant: start_time < end_time, unless wraps_midnight is set, in which
    case end_time belongs to the following day.
    """

    model_config = ConfigDict(frozen=True)

    start_time: str
    end_time: str
    wraps_midnight: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        time_to_minutes(v)
        return v

    @model_validator(mode="after")
    def validate_order(self):
        start = time_to_minutes(self.start_time)
        end = time_to_minutes(self.end_time)
        if self.wraps_midnight and end > start:
            raise ValueError("A window that wraps midnight must end before it starts")
        if not self.wraps_midnight and start >= end:
            raise ValueError(
                f"start_time {self.start_time} must be before end_time {self.end_time}"
            )
        return self

    @classmethod
    def from_start(cls, start_time: str, duration_minutes: int) -> "TimeWindow":
        if duration_minutes <= 0:
            raise ValueError(f"Duration must be positive, got {duration_minutes}")
        return cls(
            start_time=start_time,
            end_time=add_minutes_to_time(start_time, duration_minutes),
            wraps_midnight=crosses_midnight(start_time, duration_minutes),
        )

    @classmethod
    def from_text(cls, text: str) -> "TimeWindow":
        """Parse free text such as "09:00 AM - 11:00 AM" or "14:00-15:30"."""
        start, end = parse_time_range(text)
        return cls(
            start_time=start,
            end_time=end,
            wraps_midnight=time_to_minutes(end) < time_to_minutes(start),
        )

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        end = time_to_minutes(self.end_time)
        return end + MINUTES_PER_DAY if self.wraps_midnight else end

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def display(self) -> str:
        return f"{format_time_display(self.start_time)} - {format_time_display(self.end_time)}"


class ExplicitWindow(BaseModel):
    """Appointment stored with a concrete start and end."""

    kind: Literal["window"] = "window"
    window: TimeWindow

    def resolve(self, default_duration_minutes: int) -> TimeWindow:
        return self.window


class ScheduledTimeWithDefaultDuration(BaseModel):
    """Appointment stored with only a start time.

    Legacy records carry no duration; they are assumed to last the
    calendar's default appointment duration.
    """

    kind: Literal["scheduled"] = "scheduled"
    scheduled_time: str
    duration_minutes: Optional[int] = Field(None, gt=0)

    @field_validator("scheduled_time")
    @classmethod
    def validate_scheduled_time(cls, v: str) -> str:
        time_to_minutes(v)
        return v

    def resolve(self, default_duration_minutes: int) -> TimeWindow:
        return TimeWindow.from_start(
            self.scheduled_time, self.duration_minutes or default_duration_minutes
        )


AppointmentTiming = Annotated[
    Union[ExplicitWindow, ScheduledTimeWithDefaultDuration],
    Field(discriminator="kind"),
]


class AppointmentRecord(BaseModel):
    """Read-only view of a persisted appointment used for capacity and conflicts."""

    model_config = ConfigDict(frozen=True)

    id: int
    appointment_date: date_type
    timing: AppointmentTiming
    status: AppointmentStatus
    assigned_employee_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def effective_window(self, default_duration_minutes: int) -> TimeWindow:
        return self.timing.resolve(default_duration_minutes)


class SlotCapacity(BaseModel):
    is_available: bool
    capacity_used: int = Field(..., ge=0)
    capacity_remaining: int = Field(..., ge=0)
    capacity_total: int = Field(..., ge=0)


class TimeSlot(BaseModel):
    start_time: str
    end_time: str
    display_start: str
    display_end: str
    capacity_used: int
    capacity_total: int
    capacity_remaining: int
    is_available: bool


class SlotSummary(BaseModel):
    fully_available: int = 0
    limited_available: int = 0
    fully_booked: int = 0

    @property
    def total(self) -> int:
        return self.fully_available + self.limited_available + self.fully_booked


class AvailableSlots(BaseModel):
    date: date_type
    slots: List[TimeSlot] = Field(default_factory=list)
    summary: SlotSummary = Field(default_factory=SlotSummary)
    duration_minutes: int = 0
    message: Optional[str] = None


class Employee(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str] = None
    role: str = "employee"
    is_active: bool = True


class ServiceOffering(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    estimated_duration_minutes: int
    is_active: bool = True


class EmployeeAvailabilityResponse(BaseModel):
    date: date_type
    time_window: str
    is_available: bool
    employee: Optional[Employee] = None
    message: str
