from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps.scheduling import (
    get_assignment_resolver,
    get_availability_service,
    get_capacity_evaluator,
)
from app.schemas.scheduling import (
    AvailableSlots,
    EmployeeAvailabilityResponse,
    SlotCapacity,
    TimeWindow,
)
from app.services.assignment import AssignmentResolver
from app.services.availability import AvailabilityService
from app.services.capacity import CapacityEvaluator
from app.utils.exceptions import SchedulingValidationError
from app.utils.time import parse_clock_time

router = APIRouter()


def validation_failed(errors: List[str]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "success": False,
            "message": errors[0] if len(errors) == 1 else "Validation failed",
            "errors": errors,
        },
    )


@router.get("/slots", response_model=AvailableSlots)
async def get_available_slots(
    date: Optional[date] = Query(None, description="Requested date (YYYY-MM-DD)"),
    service_ids: List[int] = Query([], description="Services to perform, repeatable"),
    vehicle_count: int = Query(1, description="Number of vehicles"),
    availability_service: AvailabilityService = Depends(get_availability_service),
):
    """
    List bookable slots of a date for the selected services.

    Fully booked slots are omitted but counted in the summary. Closed dates
    return an empty list with a message.
    """
    try:
        return await availability_service.get_available_slots(
            date, service_ids, vehicle_count
        )
    except SchedulingValidationError as e:
        raise validation_failed(e.errors)


@router.get("/capacity", response_model=SlotCapacity)
async def check_slot_capacity(
    date: date = Query(..., description="Date to check"),
    time: str = Query(..., description="Start time, e.g. 09:30 or 9:30 AM"),
    duration: int = Query(..., description="Duration in minutes"),
    capacity_evaluator: CapacityEvaluator = Depends(get_capacity_evaluator),
):
    """Capacity of a single window against the date's active appointments."""
    try:
        start_time = parse_clock_time(time)
        return await capacity_evaluator.check_slot_capacity(date, start_time, duration)
    except SchedulingValidationError as e:
        raise validation_failed(e.errors)
    except ValueError as e:
        raise validation_failed([str(e)])


@router.get("/employee", response_model=EmployeeAvailabilityResponse)
async def find_available_employee(
    date: date = Query(..., description="Date of the work"),
    time_window: str = Query(..., description='e.g. "09:00 AM - 11:00 AM"'),
    assignment_resolver: AssignmentResolver = Depends(get_assignment_resolver),
):
    """First technician without an overlapping appointment in the window."""
    try:
        window = TimeWindow.from_text(time_window)
    except ValueError as e:
        raise validation_failed([str(e)])

    employee = await assignment_resolver.find_available_employee(date, window)
    if employee is None:
        message = "No technician is available for the selected time"
    else:
        message = f"{employee.name} is available"

    return EmployeeAvailabilityResponse(
        date=date,
        time_window=window.display(),
        is_available=employee is not None,
        employee=employee,
        message=message,
    )
