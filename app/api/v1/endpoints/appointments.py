"""Appointment endpoints."""

from fastapi import APIRouter, Body, Query, status

from app.dependencies import AppointmentId, PatientId, Store
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    CancelAppointmentResponse,
    MessageResponse,
)
from app.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "/",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(store: Store) -> list[AppointmentResponse]:
    """
    List all appointments.

    Args:
        store: Record store

    Returns:
        Appointments ordered by date
    """
    service = AppointmentService(store)
    return await service.list_appointments()


@router.get(
    "/date-range",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments in a date range",
)
async def list_appointments_by_date_range(
    store: Store,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
) -> list[AppointmentResponse]:
    """
    List appointments between two timestamps (inclusive).

    Args:
        store: Record store
        start_date: Lower bound
        end_date: Upper bound

    Returns:
        Matching appointments
    """
    service = AppointmentService(store)
    return await service.list_by_date_range(start_date, end_date)


@router.get(
    "/patient/{patient_id}",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List a patient's appointments",
)
async def list_patient_appointments(
    patient_id: PatientId,
    store: Store,
) -> list[AppointmentResponse]:
    """List appointments booked by a patient."""
    service = AppointmentService(store)
    return await service.list_patient_appointments(patient_id)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: AppointmentId,
    store: Store,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Args:
        appointment_id: Appointment ID
        store: Record store

    Returns:
        Appointment details

    Raises:
        NotFoundException: If appointment not found
    """
    service = AppointmentService(store)
    return await service.get_appointment(appointment_id)


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    store: Store,
) -> AppointmentResponse:
    """
    Create a new appointment.

    Args:
        data: Appointment creation data
        store: Record store

    Returns:
        Created appointment
    """
    service = AppointmentService(store)
    return await service.create_appointment(data)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment",
)
@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment",
    include_in_schema=False,
)
async def update_appointment(
    appointment_id: AppointmentId,
    store: Store,
    data: AppointmentUpdate | None = Body(None),
) -> AppointmentResponse:
    """
    Partially update an appointment.

    ``start_time``/``end_time`` may be bare ``HH:MM`` clock times; they are
    placed on the date of ``date_time``. Setting ``status`` to ``cancelled``
    runs the cancellation flow.

    Args:
        appointment_id: Appointment ID
        data: Fields to change, a missing body counts as empty
        store: Record store

    Returns:
        Updated appointment

    Raises:
        BadRequestException: If the body is empty or a time is malformed
        NotFoundException: If appointment not found
    """
    changes = data.changes() if data is not None else {}
    service = AppointmentService(store)
    return await service.update_appointment(appointment_id, changes)


@router.post(
    "/{appointment_id}/cancel",
    response_model=CancelAppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel appointment",
)
@router.put(
    "/{appointment_id}/cancel",
    response_model=CancelAppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel appointment",
    include_in_schema=False,
)
async def cancel_appointment(
    appointment_id: AppointmentId,
    store: Store,
) -> CancelAppointmentResponse:
    """
    Cancel an appointment. Cancelling twice is a no-op.

    Args:
        appointment_id: Appointment ID
        store: Record store

    Returns:
        Confirmation message and the cancelled appointment

    Raises:
        NotFoundException: If appointment not found
        LookupFailedException: If the appointment cannot be read
        StatusUpdateFailedException: If the status cannot be written
    """
    service = AppointmentService(store)
    return await service.cancel_appointment(appointment_id)


@router.delete(
    "/{appointment_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: AppointmentId,
    store: Store,
) -> MessageResponse:
    """
    Permanently delete an appointment.

    Args:
        appointment_id: Appointment ID
        store: Record store

    Raises:
        NotFoundException: If appointment not found
    """
    service = AppointmentService(store)
    await service.delete_appointment(appointment_id)
    return MessageResponse(message="Appointment deleted successfully")
