"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.blob_store import BlobStore, get_blob_store
from app.core.exceptions import BadRequestException
from app.core.record_store import RecordStore, SQLAlchemyRecordStore
from app.core.redis_client import CacheManager, get_redis_client
from app.database import get_db


def parse_uuid(value: str, label: str) -> UUID:
    """
    Parse an identifier taken from the request path.

    Raises:
        BadRequestException: If the value is not a UUID
    """
    try:
        return UUID(value)
    except ValueError:
        raise BadRequestException(f"Invalid {label} ID")


def valid_appointment_id(appointment_id: str) -> UUID:
    """Appointment ID path parameter."""
    return parse_uuid(appointment_id, "appointment")


def valid_doctor_id(doctor_id: str) -> UUID:
    """Doctor ID path parameter."""
    return parse_uuid(doctor_id, "doctor")


def valid_document_id(document_id: str) -> UUID:
    """Document ID path parameter."""
    return parse_uuid(document_id, "document")


def valid_patient_id(patient_id: str) -> UUID:
    """Patient ID path parameter."""
    return parse_uuid(patient_id, "patient")


async def get_record_store(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> RecordStore:
    """Record store bound to the request's database session."""
    return SQLAlchemyRecordStore(db)


def get_cache_manager() -> CacheManager:
    """Get cache manager instance."""
    return CacheManager(redis_client=get_redis_client())


# Type aliases for dependency injection
Store = Annotated[RecordStore, Depends(get_record_store)]
Blobs = Annotated[BlobStore, Depends(get_blob_store)]
Cache = Annotated[CacheManager | None, Depends(get_cache_manager)]
AppointmentId = Annotated[UUID, Depends(valid_appointment_id)]
DoctorId = Annotated[UUID, Depends(valid_doctor_id)]
DocumentId = Annotated[UUID, Depends(valid_document_id)]
PatientId = Annotated[UUID, Depends(valid_patient_id)]
