"""Doctor service for business logic."""

from typing import Any
from uuid import UUID

import structlog

from app.core.exceptions import BadRequestException, NotFoundException
from app.core.record_store import RecordStore
from app.core.redis_client import CacheManager
from app.schemas.doctors import (
    DoctorAvailabilityUpdate,
    DoctorCreate,
    DoctorResponse,
    DoctorUpdate,
)

COLLECTION = "doctors"

logger = structlog.get_logger(__name__)


class DoctorService:
    """Service for doctor operations."""

    # Cache TTL in seconds
    DOCTOR_CACHE_TTL = 900  # 15 minutes for individual doctors
    DOCTOR_LIST_CACHE_TTL = 300  # 5 minutes for lists
    DOCTOR_LIST_CACHE_KEY = "doctor:list:all"

    def __init__(self, store: RecordStore, cache_manager: CacheManager | None = None):
        """Initialize service with record store and optional cache manager."""
        self.store = store
        self.cache = cache_manager

    @staticmethod
    def _get_doctor_cache_key(doctor_id: UUID) -> str:
        """Generate cache key for doctor."""
        return f"doctor:{doctor_id}"

    def _invalidate(self, doctor_id: UUID | None = None) -> None:
        if not self.cache:
            return
        if doctor_id is not None:
            self.cache.delete(self._get_doctor_cache_key(doctor_id))
        self.cache.delete_pattern("doctor:list:*")

    async def list_doctors(self) -> list[DoctorResponse]:
        """List all doctors with caching."""
        if self.cache:
            cached = self.cache.get_json(self.DOCTOR_LIST_CACHE_KEY)
            if cached is not None:
                return [DoctorResponse.model_validate(row) for row in cached]

        rows = await self.store.find(COLLECTION, order_by="name")

        if self.cache:
            self.cache.set_json(self.DOCTOR_LIST_CACHE_KEY, rows, ttl=self.DOCTOR_LIST_CACHE_TTL)

        return [DoctorResponse.model_validate(row) for row in rows]

    async def get_doctor(self, doctor_id: UUID) -> DoctorResponse:
        """
        Get doctor by ID with caching.

        Raises:
            NotFoundException: If doctor not found
        """
        if self.cache:
            cached = self.cache.get_json(self._get_doctor_cache_key(doctor_id))
            if cached:
                return DoctorResponse.model_validate(cached)

        row = await self.store.find_one(COLLECTION, {"id": doctor_id})
        if not row:
            raise NotFoundException("Doctor not found")

        if self.cache:
            self.cache.set_json(
                self._get_doctor_cache_key(doctor_id),
                row,
                ttl=self.DOCTOR_CACHE_TTL,
            )

        return DoctorResponse.model_validate(row)

    async def create_doctor(self, data: DoctorCreate) -> DoctorResponse:
        """Create a new doctor profile."""
        values = data.model_dump(exclude_none=True)
        row = await self.store.insert(COLLECTION, values)
        self._invalidate()

        logger.info("doctor_created", doctor_id=str(row["id"]))
        return DoctorResponse.model_validate(row)

    async def update_doctor(self, doctor_id: UUID, data: DoctorUpdate) -> DoctorResponse:
        """
        Update doctor profile.

        Raises:
            BadRequestException: If no field was provided
            NotFoundException: If doctor not found
        """
        values: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if not values:
            raise BadRequestException("No update data provided")

        rows = await self.store.update(COLLECTION, {"id": doctor_id}, values)
        if not rows:
            raise NotFoundException("Doctor not found")

        self._invalidate(doctor_id)
        return DoctorResponse.model_validate(rows[0])

    async def update_availability(
        self,
        doctor_id: UUID,
        data: DoctorAvailabilityUpdate,
    ) -> DoctorResponse:
        """
        Replace a doctor's availability.

        Raises:
            NotFoundException: If doctor not found
        """
        existing = await self.store.find_one(COLLECTION, {"id": doctor_id})
        if not existing:
            raise NotFoundException("Doctor not found")

        rows = await self.store.update(
            COLLECTION,
            {"id": doctor_id},
            {"availability": data.availability},
        )
        if not rows:
            raise NotFoundException("Doctor not found")

        self._invalidate(doctor_id)
        return DoctorResponse.model_validate(rows[0])

    async def delete_doctor(self, doctor_id: UUID) -> None:
        """
        Delete a doctor.

        Raises:
            NotFoundException: If doctor not found
        """
        deleted = await self.store.delete(COLLECTION, {"id": doctor_id})
        if not deleted:
            raise NotFoundException("Doctor not found")

        self._invalidate(doctor_id)
        logger.info("doctor_deleted", doctor_id=str(doctor_id))
