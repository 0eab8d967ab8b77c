from datetime import date, datetime

import pytest

from app.schemas.calendar import BusinessCalendar
from app.services.availability import AvailabilityService
from app.utils.exceptions import SchedulingValidationError
from tests.conftest import FIXED_NOW, SUNDAY, TUESDAY
from tests.fixtures.scheduling_fixtures import (
    InMemoryAppointments,
    InMemoryServices,
    window_record,
)


@pytest.fixture
def appointments():
    return InMemoryAppointments()


@pytest.fixture
def availability_service(calendar, appointments, offerings):
    return AvailabilityService(calendar, appointments, InMemoryServices(offerings))


class TestCalculateDuration:
    """Test duration of a service selection."""

    async def test_sums_services(self, availability_service):
        assert await availability_service.calculate_duration([1, 2], 1) == 150

    async def test_sequential_vehicles_multiply(self, availability_service):
        assert await availability_service.calculate_duration([1], 3) == 180

    async def test_parallel_vehicles_keep_duration(self, appointments, offerings):
        calendar = BusinessCalendar(multi_vehicle_strategy="parallel")
        service = AvailabilityService(calendar, appointments, InMemoryServices(offerings))
        assert await service.calculate_duration([1], 3) == 60

    async def test_duplicate_ids_count_once(self, availability_service):
        assert await availability_service.calculate_duration([1, 1], 1) == 60

    @pytest.mark.parametrize(
        "service_ids,vehicle_count,message",
        [
            ([1], 0, "Vehicle count must be at least 1"),
            ([], 1, "No services selected"),
            ([1, 99], 1, "One or more services not found or inactive"),
            ([4], 1, "One or more services not found or inactive"),
        ],
    )
    async def test_rejects_invalid_selection(
        self, availability_service, service_ids, vehicle_count, message
    ):
        with pytest.raises(SchedulingValidationError) as exc_info:
            await availability_service.calculate_duration(service_ids, vehicle_count)
        assert exc_info.value.errors == [message]


class TestGetAvailableSlots:
    """Test the bookable slot listing."""

    async def test_empty_day_lists_every_slot(self, availability_service):
        result = await availability_service.get_available_slots(
            TUESDAY, [1], 1, now=FIXED_NOW
        )

        assert result.message is None
        assert result.duration_minutes == 60
        assert len(result.slots) == 14
        assert result.summary.fully_available == 14
        assert result.summary.limited_available == 0
        assert result.summary.fully_booked == 0
        first = result.slots[0]
        assert first.start_time == "09:00"
        assert first.display_start == "9:00 AM"
        assert first.display_end == "10:00 AM"
        assert first.capacity_remaining == 3
        assert first.is_available

    async def test_full_and_limited_slots_are_classified(
        self, availability_service, appointments
    ):
        appointments.records = [
            window_record(TUESDAY, "09:00", "10:00"),
            window_record(TUESDAY, "09:00", "10:00"),
            window_record(TUESDAY, "09:00", "10:00"),
            window_record(TUESDAY, "14:00", "15:00"),
            window_record(TUESDAY, "14:00", "15:00"),
        ]

        result = await availability_service.get_available_slots(
            TUESDAY, [3], 1, now=FIXED_NOW
        )
        by_start = {slot.start_time: slot for slot in result.slots}

        # 30-minute service: 09:00 and 09:30 are full
        assert "09:00" not in by_start
        assert "09:30" not in by_start
        assert by_start["10:00"].capacity_remaining == 3
        assert by_start["14:00"].capacity_remaining == 1
        assert by_start["14:30"].capacity_remaining == 1
        assert result.summary.fully_booked == 2
        assert result.summary.limited_available == 2
        assert all(slot.is_available for slot in result.slots)
        assert result.summary.total == len(result.slots) + 2

    async def test_day_is_loaded_once(self, availability_service, appointments):
        await availability_service.get_available_slots(TUESDAY, [1], 1, now=FIXED_NOW)
        assert appointments.calls == 1

    async def test_minimum_notice_drops_early_slots_today(self, availability_service):
        now = datetime(2025, 6, 3, 9, 10)

        result = await availability_service.get_available_slots(
            TUESDAY, [3], 1, now=now
        )

        assert result.slots[0].start_time == "11:30"
        assert result.summary.fully_booked == 0

    async def test_fully_booked_day_has_message(self, availability_service):
        late = datetime(2025, 6, 3, 17, 0)

        result = await availability_service.get_available_slots(
            TUESDAY, [1], 1, now=late
        )

        assert result.slots == []
        assert result.message == "No available time slots for the selected date"

    async def test_non_working_day(self, availability_service):
        result = await availability_service.get_available_slots(
            SUNDAY, [1], 1, now=FIXED_NOW
        )
        assert result.slots == []
        assert result.message == "Selected date is not a working day"

    async def test_blocked_date(self, appointments, offerings):
        calendar = BusinessCalendar(blocked_dates={TUESDAY})
        service = AvailabilityService(calendar, appointments, InMemoryServices(offerings))

        result = await service.get_available_slots(TUESDAY, [1], 1, now=FIXED_NOW)

        assert result.slots == []
        assert result.message == "Selected date is not available (holiday or closure)"

    async def test_multi_vehicle_duration_shrinks_day(self, availability_service):
        result = await availability_service.get_available_slots(
            TUESDAY, [1], 3, now=FIXED_NOW
        )

        assert result.duration_minutes == 180
        assert all(slot.end_time <= "18:00" for slot in result.slots)
        assert [slot.start_time for slot in result.slots][:1] == ["09:00"]

    @pytest.mark.parametrize(
        "day,message",
        [
            (None, "Date is required"),
            (date(2025, 6, 1), "Cannot book appointments in the past"),
            (date(2025, 7, 10), "Cannot book more than 30 days in advance"),
        ],
    )
    async def test_rejects_unbookable_dates(self, availability_service, day, message):
        with pytest.raises(SchedulingValidationError) as exc_info:
            await availability_service.get_available_slots(day, [1], 1, now=FIXED_NOW)
        assert exc_info.value.errors == [message]

    async def test_rejects_zero_vehicles(self, availability_service):
        with pytest.raises(SchedulingValidationError):
            await availability_service.get_available_slots(
                TUESDAY, [1], 0, now=FIXED_NOW
            )
