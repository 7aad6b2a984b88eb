"""Doctor management endpoints."""

from fastapi import APIRouter, Depends, status

from app.dependencies import Cache, DoctorId, Store
from app.schemas.appointments import AppointmentResponse, MessageResponse
from app.schemas.doctors import (
    DoctorAvailabilityUpdate,
    DoctorCreate,
    DoctorResponse,
    DoctorUpdate,
)
from app.services.appointment_service import AppointmentService
from app.services.doctor_service import DoctorService

router = APIRouter()


def get_doctor_service(store: Store, cache_manager: Cache) -> DoctorService:
    """Get doctor service instance."""
    return DoctorService(store, cache_manager=cache_manager)


# ============================================================================
# Doctor CRUD Endpoints
# ============================================================================


@router.get("/", response_model=list[DoctorResponse])
async def list_doctors(doctor_service: DoctorService = Depends(get_doctor_service)):
    """List all doctors."""
    return await doctor_service.list_doctors()


@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    doctor_id: DoctorId,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """Get doctor by ID."""
    return await doctor_service.get_doctor(doctor_id)


@router.post("/", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    doctor_data: DoctorCreate,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """
    Create a new doctor profile.

    - **name**: Display name
    - **email**: Contact email (unique)
    - **specialty**: Primary medical specialty
    - **phone**: Contact phone
    """
    return await doctor_service.create_doctor(doctor_data)


@router.put("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: DoctorId,
    doctor_data: DoctorUpdate,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """
    Update doctor profile.

    Fields may be sent in snake_case or camelCase.
    """
    return await doctor_service.update_doctor(doctor_id, doctor_data)


@router.delete("/{doctor_id}", response_model=MessageResponse)
async def delete_doctor(
    doctor_id: DoctorId,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """Delete a doctor."""
    await doctor_service.delete_doctor(doctor_id)
    return MessageResponse(message="Doctor deleted successfully")


# ============================================================================
# Schedule Endpoints
# ============================================================================


@router.get("/{doctor_id}/appointments", response_model=list[AppointmentResponse])
async def get_doctor_appointments(doctor_id: DoctorId, store: Store):
    """List appointments assigned to a doctor."""
    service = AppointmentService(store)
    return await service.list_doctor_appointments(doctor_id)


@router.put("/{doctor_id}/availability", response_model=DoctorResponse)
async def update_doctor_availability(
    doctor_id: DoctorId,
    availability: DoctorAvailabilityUpdate,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    """Replace a doctor's weekly availability."""
    return await doctor_service.update_availability(doctor_id, availability)
