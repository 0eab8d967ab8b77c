from datetime import date, datetime

import pytest
from pydantic import ValidationError

from app.schemas.calendar import BusinessCalendar, LunchBreak, OperatingHours
from tests.conftest import FIXED_NOW, SUNDAY, TUESDAY


class TestCalendarDefaults:
    """Test the default workshop configuration."""

    def test_defaults(self, calendar):
        assert calendar.operating_days == frozenset({0, 1, 2, 3, 4, 5})
        assert calendar.operating_hours.start == "09:00"
        assert calendar.operating_hours.end == "18:00"
        assert calendar.lunch_break.enabled
        assert calendar.slot_duration_minutes == 30
        assert calendar.max_concurrent_appointments == 3
        assert calendar.advance_booking_days == 30
        assert calendar.minimum_notice_hours == 2
        assert calendar.default_appointment_duration_minutes == 120

    def test_calendar_is_immutable(self, calendar):
        with pytest.raises(ValidationError):
            calendar.max_concurrent_appointments = 10

    def test_rejects_invalid_weekday(self):
        with pytest.raises(ValidationError):
            BusinessCalendar(operating_days={0, 7})

    def test_rejects_inverted_hours(self):
        with pytest.raises(ValidationError):
            OperatingHours(start="18:00", end="09:00")

    def test_rejects_inverted_lunch(self):
        with pytest.raises(ValidationError):
            LunchBreak(start="13:00", end="12:00")

    def test_disabled_lunch_is_not_validated_for_order(self):
        assert not LunchBreak(enabled=False, start="13:00", end="12:00").enabled

    def test_rejects_unknown_timezone(self):
        with pytest.raises(ValidationError):
            BusinessCalendar(timezone="Mars/Olympus_Mons")

    def test_now_is_naive(self):
        assert BusinessCalendar(timezone="Asia/Kolkata").now().tzinfo is None


class TestCalendarDays:
    """Test working and blocked day predicates."""

    def test_sunday_is_not_a_working_day(self, calendar):
        assert calendar.is_working_day(TUESDAY)
        assert not calendar.is_working_day(SUNDAY)

    def test_accepts_datetimes(self, calendar):
        assert calendar.is_working_day(datetime(2025, 6, 3, 15, 0))

    def test_blocked_dates(self):
        calendar = BusinessCalendar(blocked_dates={TUESDAY})
        assert calendar.is_blocked_date(TUESDAY)
        assert calendar.is_blocked_date(datetime(2025, 6, 3, 23, 59))
        assert not calendar.is_blocked_date(date(2025, 6, 4))


class TestCalendarBookingWindow:
    """Test time-dependent predicates against a fixed now."""

    def test_past_dates(self, calendar):
        assert calendar.is_past_date_time(date(2025, 6, 1), "17:00", FIXED_NOW)
        assert not calendar.is_past_date_time(TUESDAY, "09:00", FIXED_NOW)

    def test_today_depends_on_time(self, calendar):
        today = FIXED_NOW.date()
        assert calendar.is_past_date_time(today, "07:30", FIXED_NOW)
        assert calendar.is_past_date_time(today, "08:00", FIXED_NOW)
        assert not calendar.is_past_date_time(today, "08:30", FIXED_NOW)

    def test_booking_window(self, calendar):
        assert not calendar.is_beyond_booking_window(date(2025, 7, 2), FIXED_NOW)
        assert calendar.is_beyond_booking_window(date(2025, 7, 3), FIXED_NOW)

    def test_minimum_notice(self, calendar):
        today = FIXED_NOW.date()
        assert not calendar.meets_minimum_notice(today, "09:30", FIXED_NOW)
        assert calendar.meets_minimum_notice(today, "10:00", FIXED_NOW)
        assert calendar.meets_minimum_notice(TUESDAY, "09:00", FIXED_NOW)


class TestCalendarHours:
    """Test lunch break and closing-time checks."""

    def test_lunch_break_overlap(self, calendar):
        assert calendar.is_lunch_break("11:30", 60)
        assert calendar.is_lunch_break("12:30", 30)
        assert calendar.is_lunch_break("10:00", 240)

    def test_touching_lunch_break_is_allowed(self, calendar):
        assert not calendar.is_lunch_break("11:00", 60)
        assert not calendar.is_lunch_break("13:00", 60)

    def test_disabled_lunch_break(self):
        calendar = BusinessCalendar(lunch_break=LunchBreak(enabled=False))
        assert not calendar.is_lunch_break("12:00", 60)

    def test_fits_before_closing(self, calendar):
        assert calendar.fits_before_closing("17:00", 60)
        assert not calendar.fits_before_closing("17:30", 60)

    def test_opens_by(self, calendar):
        assert calendar.opens_by("09:00")
        assert not calendar.opens_by("08:30")

    def test_multi_vehicle_duration_follows_strategy(self, calendar):
        assert calendar.multi_vehicle_duration(60, 3) == 180
        parallel = BusinessCalendar(multi_vehicle_strategy="parallel")
        assert parallel.multi_vehicle_duration(60, 3) == 60
