from datetime import timedelta

from tests.conftest import next_working_date


class TestSlotsEndpoint:
    """Test GET /api/v1/availability/slots."""

    async def test_lists_slots(self, client, calendar, services):
        day = next_working_date(calendar)

        response = await client.get(
            "/api/v1/availability/slots",
            params={
                "date": day.isoformat(),
                "service_ids": [services[0].id, services[2].id],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == day.isoformat()
        assert data["duration_minutes"] == 90
        assert data["message"] is None
        assert data["slots"][0]["start_time"] == "09:00"
        assert data["slots"][0]["end_time"] == "10:30"
        assert data["slots"][0]["display_end"] == "10:30 AM"
        assert data["summary"]["fully_available"] == len(data["slots"])

    async def test_full_slot_is_left_out(self, client, calendar, services, make_appointment):
        day = next_working_date(calendar)
        for _ in range(3):
            await make_appointment(day, scheduled_time="09:00", duration_minutes=30)

        response = await client.get(
            "/api/v1/availability/slots",
            params={"date": day.isoformat(), "service_ids": [services[2].id]},
        )

        data = response.json()
        assert "09:00" not in [slot["start_time"] for slot in data["slots"]]
        assert data["summary"]["fully_booked"] == 1

    async def test_non_working_day(self, client, calendar, services):
        day = calendar.now().date() + timedelta(days=1)
        while calendar.is_working_day(day):
            day += timedelta(days=1)

        response = await client.get(
            "/api/v1/availability/slots",
            params={"date": day.isoformat(), "service_ids": [services[0].id]},
        )

        assert response.status_code == 200
        assert response.json()["slots"] == []
        assert response.json()["message"] == "Selected date is not a working day"

    async def test_missing_date(self, client, services):
        response = await client.get(
            "/api/v1/availability/slots", params={"service_ids": [services[0].id]}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["success"] is False
        assert response.json()["detail"]["message"] == "Date is required"

    async def test_past_date(self, client, calendar, services):
        day = calendar.now().date() - timedelta(days=3)

        response = await client.get(
            "/api/v1/availability/slots",
            params={"date": day.isoformat(), "service_ids": [services[0].id]},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Cannot book appointments in the past"

    async def test_zero_vehicles(self, client, calendar, services):
        response = await client.get(
            "/api/v1/availability/slots",
            params={
                "date": next_working_date(calendar).isoformat(),
                "service_ids": [services[0].id],
                "vehicle_count": 0,
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"]["errors"] == ["Vehicle count must be at least 1"]

    async def test_unknown_service(self, client, calendar, services):
        response = await client.get(
            "/api/v1/availability/slots",
            params={
                "date": next_working_date(calendar).isoformat(),
                "service_ids": [999],
            },
        )

        assert response.status_code == 400


class TestCapacityEndpoint:
    """Test GET /api/v1/availability/capacity."""

    async def test_capacity_counts_overlaps(self, client, calendar, make_appointment):
        day = next_working_date(calendar)
        await make_appointment(day, scheduled_time="10:00", duration_minutes=60)
        await make_appointment(day, time_window="10:30 AM - 11:30 AM")
        await make_appointment(day, scheduled_time="09:00")  # legacy: until 11:00

        response = await client.get(
            "/api/v1/availability/capacity",
            params={"date": day.isoformat(), "time": "10:30 AM", "duration": 30},
        )

        assert response.status_code == 200
        assert response.json() == {
            "is_available": False,
            "capacity_used": 3,
            "capacity_remaining": 0,
            "capacity_total": 3,
        }

    async def test_invalid_time(self, client, calendar):
        response = await client.get(
            "/api/v1/availability/capacity",
            params={
                "date": next_working_date(calendar).isoformat(),
                "time": "half past ten",
                "duration": 30,
            },
        )

        assert response.status_code == 400

    async def test_invalid_duration(self, client, calendar):
        response = await client.get(
            "/api/v1/availability/capacity",
            params={
                "date": next_working_date(calendar).isoformat(),
                "time": "10:00",
                "duration": 0,
            },
        )

        assert response.status_code == 400


class TestEmployeeEndpoint:
    """Test GET /api/v1/availability/employee."""

    async def test_first_free_technician(self, client, calendar, technicians, make_appointment):
        day = next_working_date(calendar)
        alex_id, sam_id = technicians[0].id, technicians[1].id
        await make_appointment(
            day, scheduled_time="09:30", duration_minutes=90, assigned_employee_id=alex_id
        )

        response = await client.get(
            "/api/v1/availability/employee",
            params={"date": day.isoformat(), "time_window": "10:00 AM - 11:00 AM"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_available"] is True
        assert data["employee"]["id"] == sam_id
        assert data["time_window"] == "10:00 AM - 11:00 AM"

    async def test_no_free_technician(self, client, calendar, technicians, make_appointment):
        day = next_working_date(calendar)
        for technician_id in (technicians[0].id, technicians[1].id):
            await make_appointment(
                day,
                scheduled_time="09:00",
                duration_minutes=180,
                assigned_employee_id=technician_id,
            )

        response = await client.get(
            "/api/v1/availability/employee",
            params={"date": day.isoformat(), "time_window": "10:00 - 11:00"},
        )

        assert response.status_code == 200
        assert response.json()["is_available"] is False
        assert response.json()["employee"] is None

    async def test_unreadable_window(self, client, calendar):
        response = await client.get(
            "/api/v1/availability/employee",
            params={
                "date": next_working_date(calendar).isoformat(),
                "time_window": "sometime tomorrow",
            },
        )

        assert response.status_code == 400
