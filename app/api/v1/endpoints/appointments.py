from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps.scheduling import get_appointment_service
from app.api.v1.endpoints.availability import validation_failed
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusTransition,
    BookingResponse,
    EmployeeAssignment,
)
from app.services.appointment import AppointmentService
from app.utils.exceptions import (
    BookingConflictError,
    EmployeeUnavailableError,
    SchedulingValidationError,
    SlotUnavailableError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    appointment_service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment and assign the first free technician."""
    try:
        appointment, employee = await appointment_service.book_appointment(
            appointment_data
        )
    except SchedulingValidationError as e:
        raise validation_failed(e.errors)
    except (SlotUnavailableError, BookingConflictError) as e:
        logger.info(
            "Booking rejected",
            date=str(appointment_data.appointment_date),
            start_time=appointment_data.start_time,
            reason=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"success": False, "message": str(e)},
        )

    if employee:
        message = f"Appointment confirmed with {employee.name}"
    else:
        message = "Appointment created, a technician will be assigned shortly"

    return BookingResponse(
        message=message,
        appointment=AppointmentResponse.model_validate(appointment),
        employee=employee,
    )


@router.get("/{appointment_uuid}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_uuid: UUID,
    appointment_service: AppointmentService = Depends(get_appointment_service),
):
    """Get appointment by UUID."""
    appointment = await appointment_service.get_appointment_by_uuid(appointment_uuid)
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found"
        )
    return appointment


@router.patch("/{appointment_uuid}/status", response_model=AppointmentResponse)
async def transition_appointment_status(
    appointment_uuid: UUID,
    transition: AppointmentStatusTransition,
    appointment_service: AppointmentService = Depends(get_appointment_service),
):
    """Move an appointment to its next status or cancel it."""
    try:
        appointment = await appointment_service.transition_appointment_status(
            appointment_uuid, transition
        )
    except SchedulingValidationError as e:
        raise validation_failed(e.errors)

    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found"
        )
    return appointment


@router.patch("/{appointment_uuid}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_uuid: UUID,
    reschedule: AppointmentReschedule,
    appointment_service: AppointmentService = Depends(get_appointment_service),
):
    """Move a pending or confirmed appointment to a new date and time."""
    try:
        appointment = await appointment_service.reschedule_appointment(
            appointment_uuid, reschedule
        )
    except SchedulingValidationError as e:
        raise validation_failed(e.errors)
    except (SlotUnavailableError, BookingConflictError) as e:
        logger.info(
            "Reschedule rejected",
            appointment_uuid=str(appointment_uuid),
            date=str(reschedule.appointment_date),
            start_time=reschedule.start_time,
            reason=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"success": False, "message": str(e)},
        )

    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found"
        )
    return appointment


@router.patch("/{appointment_uuid}/assign", response_model=AppointmentResponse)
async def assign_employee(
    appointment_uuid: UUID,
    assignment: EmployeeAssignment,
    appointment_service: AppointmentService = Depends(get_appointment_service),
):
    """Assign a technician to an appointment and confirm it."""
    try:
        appointment = await appointment_service.assign_employee(
            appointment_uuid, assignment.employee_id
        )
    except SchedulingValidationError as e:
        raise validation_failed(e.errors)
    except (EmployeeUnavailableError, BookingConflictError) as e:
        logger.info(
            "Assignment rejected",
            appointment_uuid=str(appointment_uuid),
            employee_id=assignment.employee_id,
            reason=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"success": False, "message": str(e)},
        )

    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found"
        )
    return appointment
