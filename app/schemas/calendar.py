from datetime import date as date_type, datetime, time, timedelta
from enum import Enum
from typing import FrozenSet, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.overlap import overlaps
from app.utils.time import calculate_multi_vehicle_duration, time_to_minutes


class WeekDay(int, Enum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


class MultiVehicleStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class OperatingHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str = "09:00"
    end: str = "18:00"

    @field_validator("start", "end")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        time_to_minutes(v)
        return v

    @model_validator(mode="after")
    def validate_order(self):
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError("Operating hours must open before they close")
        return self


class LunchBreak(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    start: str = "12:00"
    end: str = "13:00"

    @field_validator("start", "end")
    @classmethod
    def validate_clock_time(cls, v: str) -> str:
        time_to_minutes(v)
        return v

    @model_validator(mode="after")
    def validate_order(self):
        if self.enabled and time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError("Lunch break must start before it ends")
        return self


DateLike = Union[date_type, datetime]


def _as_date(value: DateLike) -> date_type:
    return value.date() if isinstance(value, datetime) else value


class BusinessCalendar(BaseModel):
    """Operating rules of the workshop: days, hours, capacity and booking window.

    Immutable once loaded; every scheduling component receives it explicitly.
    Predicates that depend on the current time accept an optional ``now``
    (naive local wall-clock time in ``timezone``).
    """

    model_config = ConfigDict(frozen=True)

    operating_days: FrozenSet[int] = Field(
        default_factory=lambda: frozenset(
            day.value for day in WeekDay if day != WeekDay.SUNDAY
        )
    )
    operating_hours: OperatingHours = Field(default_factory=OperatingHours)
    lunch_break: LunchBreak = Field(default_factory=LunchBreak)
    slot_duration_minutes: int = Field(30, gt=0)
    max_concurrent_appointments: int = Field(3, ge=1)
    advance_booking_days: int = Field(30, ge=0)
    minimum_notice_hours: int = Field(2, ge=0)
    blocked_dates: FrozenSet[date_type] = Field(default_factory=frozenset)
    multi_vehicle_strategy: MultiVehicleStrategy = MultiVehicleStrategy.SEQUENTIAL
    default_appointment_duration_minutes: int = Field(120, gt=0)
    timezone: str = "UTC"

    @field_validator("operating_days")
    @classmethod
    def validate_operating_days(cls, v: FrozenSet[int]) -> FrozenSet[int]:
        invalid = sorted(day for day in v if day not in range(7))
        if invalid:
            raise ValueError(f"Weekday numbers must be 0 (Monday) to 6 (Sunday): {invalid}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    def now(self) -> datetime:
        """Current wall-clock time in the workshop's timezone (naive)."""
        return datetime.now(ZoneInfo(self.timezone)).replace(tzinfo=None)

    def is_working_day(self, day: DateLike) -> bool:
        return _as_date(day).weekday() in self.operating_days

    def is_blocked_date(self, day: DateLike) -> bool:
        return _as_date(day) in self.blocked_dates

    def is_past_date_time(
        self, day: DateLike, clock_time: str, now: Optional[datetime] = None
    ) -> bool:
        """True if the day is before today, or is today and the time has passed."""
        now = now or self.now()
        day = _as_date(day)
        if day != now.date():
            return day < now.date()
        return time_to_minutes(clock_time) <= now.hour * 60 + now.minute

    def is_beyond_booking_window(
        self, day: DateLike, now: Optional[datetime] = None
    ) -> bool:
        now = now or self.now()
        return (_as_date(day) - now.date()).days > self.advance_booking_days

    def meets_minimum_notice(
        self, day: DateLike, clock_time: str, now: Optional[datetime] = None
    ) -> bool:
        now = now or self.now()
        hours, minutes = divmod(time_to_minutes(clock_time), 60)
        start = datetime.combine(_as_date(day), time(hours, minutes))
        return start >= now + timedelta(hours=self.minimum_notice_hours)

    def is_lunch_break(self, start_time: str, duration_minutes: int) -> bool:
        """True if [start_time, start_time + duration) touches the lunch break."""
        if not self.lunch_break.enabled:
            return False
        slot_start = time_to_minutes(start_time)
        return overlaps(
            slot_start,
            slot_start + duration_minutes,
            time_to_minutes(self.lunch_break.start),
            time_to_minutes(self.lunch_break.end),
        )

    def opens_by(self, start_time: str) -> bool:
        return time_to_minutes(start_time) >= time_to_minutes(self.operating_hours.start)

    def fits_before_closing(self, start_time: str, duration_minutes: int) -> bool:
        slot_end = time_to_minutes(start_time) + duration_minutes
        return slot_end <= time_to_minutes(self.operating_hours.end)

    def multi_vehicle_duration(self, service_duration: int, vehicle_count: int) -> int:
        return calculate_multi_vehicle_duration(
            service_duration, vehicle_count, self.multi_vehicle_strategy.value
        )
