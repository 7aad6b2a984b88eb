"""Appointment service for business logic."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog

from app.core.exceptions import (
    BadRequestException,
    BaseDateUnavailableException,
    InvalidTimeFormatException,
    LookupFailedException,
    NoUpdateDataException,
    NotFoundException,
    RecordStoreError,
    StatusUpdateFailedException,
)
from app.core.record_store import RecordStore
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatus,
    CancelAppointmentResponse,
)
from app.services.time_normalizer import is_clock_time, normalize_time

COLLECTION = "appointments"
DOCTORS = "doctors"

# Time fields that may be given as a bare clock time and take their date from
# the appointment's date_time
DATE_BOUND_FIELDS = ("start_time", "end_time")

# Columns an update may change but never clear
NON_NULLABLE_FIELDS = ("patient_id", "doctor_id", "status")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def _coerce_status(value: Any) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise BadRequestException(f"Invalid status: {value!r}")


class AppointmentService:
    """Service for managing appointments."""

    def __init__(
        self,
        store: RecordStore,
        logger: Any | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize service with record store, log sink and clock."""
        self.store = store
        self.logger = logger or structlog.get_logger(__name__)
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_appointments(self) -> list[AppointmentResponse]:
        """List every appointment ordered by date."""
        rows = await self.store.find(COLLECTION, order_by="date_time")
        return await self._with_doctors(rows)

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        row = await self.store.find_one(COLLECTION, {"id": appointment_id})
        if not row:
            raise NotFoundException("Appointment not found")
        [appointment] = await self._with_doctors([row])
        return appointment

    async def list_by_date_range(
        self,
        start_date: str | None,
        end_date: str | None,
    ) -> list[AppointmentResponse]:
        """
        List appointments whose date_time falls inside an inclusive range.

        Raises:
            BadRequestException: If either bound is missing or malformed
        """
        if not start_date or not end_date:
            raise BadRequestException("Start date and end date are required")

        lower = normalize_time(start_date, field="start_date")
        upper = normalize_time(end_date, field="end_date")

        rows = await self.store.find(
            COLLECTION,
            ranges={"date_time": (lower, upper)},
            order_by="date_time",
        )
        return await self._with_doctors(rows)

    async def list_patient_appointments(self, patient_id: UUID) -> list[AppointmentResponse]:
        """List appointments booked by a patient."""
        rows = await self.store.find(COLLECTION, {"patient_id": patient_id}, order_by="date_time")
        return await self._with_doctors(rows)

    async def list_doctor_appointments(self, doctor_id: UUID) -> list[AppointmentResponse]:
        """List appointments assigned to a doctor."""
        rows = await self.store.find(COLLECTION, {"doctor_id": doctor_id}, order_by="date_time")
        return await self._with_doctors(rows)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_appointment(self, data: AppointmentCreate) -> AppointmentResponse:
        """
        Create a new appointment.

        Args:
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            BadRequestException: If patient, doctor or date/time is missing
        """
        if not data.patient_id or not data.doctor_id or not data.date_time:
            raise BadRequestException("Patient ID, doctor ID, and date/time are required")

        date_time = normalize_time(data.date_time, field="date_time")
        values: dict[str, Any] = {
            "patient_id": data.patient_id,
            "doctor_id": data.doctor_id,
            "date_time": date_time,
            "status": (data.status or AppointmentStatus.SCHEDULED).value,
            "notes": data.notes,
        }
        for field in DATE_BOUND_FIELDS:
            raw = getattr(data, field)
            if raw is not None:
                values[field] = normalize_time(raw, date_time, field=field)

        row = await self.store.insert(COLLECTION, values)
        self.logger.info("appointment_created", appointment_id=str(row["id"]))
        return AppointmentResponse.model_validate(row)

    async def update_appointment(
        self,
        appointment_id: UUID,
        data: dict[str, Any],
    ) -> AppointmentResponse:
        """
        Apply a partial update to an appointment.

        Time fields are normalized first; any failure aborts before a write.
        A payload setting ``status`` to ``cancelled`` is routed through the
        cancellation flow, anything else is written in a single update.

        Args:
            appointment_id: Appointment ID
            data: Fields explicitly sent by the client

        Returns:
            Updated appointment

        Raises:
            NoUpdateDataException: If the payload is empty
            BadRequestException: If a required column is set to null or the status is invalid
            InvalidTimeFormatException: If a time field cannot be parsed
            BaseDateUnavailableException: If a clock time has no date to join
            NotFoundException: If appointment not found
        """
        if not data:
            raise NoUpdateDataException()

        self.logger.info(
            "appointment_update_requested",
            appointment_id=str(appointment_id),
            fields=sorted(data),
        )

        for field in NON_NULLABLE_FIELDS:
            if field in data and data[field] is None:
                raise BadRequestException(f"{field} cannot be null")

        values = await self._normalize_times(appointment_id, data)
        if "status" in values:
            values["status"] = _coerce_status(values["status"])

        if values.get("status") is AppointmentStatus.CANCELLED:
            cancelled_at = values.pop("cancelled_at", None)
            values.pop("status")
            appointment, _ = await self._cancel(
                appointment_id,
                extra=values,
                cancelled_at=cancelled_at,
            )
            return appointment

        # cancelled_at is only ever written by the cancellation flow
        values.pop("cancelled_at", None)
        if not values:
            raise NoUpdateDataException()
        if "status" in values:
            values["status"] = values["status"].value

        rows = await self.store.update(COLLECTION, {"id": appointment_id}, values)
        if not rows:
            self.logger.info("appointment_not_found", appointment_id=str(appointment_id))
            raise NotFoundException("Appointment not found")

        self.logger.info("appointment_updated", appointment_id=str(appointment_id))
        return AppointmentResponse.model_validate(rows[0])

    async def cancel_appointment(self, appointment_id: UUID) -> CancelAppointmentResponse:
        """
        Cancel an appointment.

        Cancelling an appointment that is already cancelled succeeds without
        issuing any write.

        Raises:
            NotFoundException: If appointment not found
            LookupFailedException: If the current record cannot be read
            StatusUpdateFailedException: If the status write fails
        """
        self.logger.info("appointment_cancellation_requested", appointment_id=str(appointment_id))

        appointment, changed = await self._cancel(appointment_id)
        message = (
            "Appointment cancelled successfully" if changed else "Appointment already cancelled"
        )
        return CancelAppointmentResponse(message=message, appointment=appointment)

    async def delete_appointment(self, appointment_id: UUID) -> None:
        """
        Permanently delete an appointment.

        Raises:
            NotFoundException: If appointment not found
        """
        deleted = await self.store.delete(COLLECTION, {"id": appointment_id})
        if not deleted:
            raise NotFoundException("Appointment not found")
        self.logger.info("appointment_deleted", appointment_id=str(appointment_id))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _with_doctors(self, rows: list[dict[str, Any]]) -> list[AppointmentResponse]:
        """Attach the id, name and specialty of each appointment's doctor."""
        doctor_ids = {row["doctor_id"] for row in rows if row.get("doctor_id") is not None}
        doctors: dict[Any, dict[str, Any]] = {}
        if doctor_ids:
            found = await self.store.find(DOCTORS, {"id": doctor_ids})
            doctors = {doctor["id"]: doctor for doctor in found}

        return [
            AppointmentResponse.model_validate({**row, "doctor": doctors.get(row.get("doctor_id"))})
            for row in rows
        ]

    async def _normalize_times(
        self,
        appointment_id: UUID,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """Return a copy of the payload with every time field made absolute."""
        values = dict(data)
        persisted: list[datetime] = []

        async def persisted_date_time() -> datetime:
            if not persisted:
                persisted.append(await self._load_base_date(appointment_id))
            return persisted[0]

        if "date_time" in values:
            raw = values["date_time"]
            if raw is None:
                raise InvalidTimeFormatException("date_time", raw)
            reference = await persisted_date_time() if is_clock_time(raw) else None
            values["date_time"] = normalize_time(raw, reference, field="date_time")

        for field in (*DATE_BOUND_FIELDS, "cancelled_at"):
            raw = values.get(field)
            if raw is None:
                continue
            reference = None
            if is_clock_time(raw):
                reference = values.get("date_time") or await persisted_date_time()
            values[field] = normalize_time(raw, reference, field=field)

        return values

    async def _load_base_date(self, appointment_id: UUID) -> datetime:
        """Fetch the persisted date_time clock times are placed on."""
        try:
            row = await self.store.find_one(COLLECTION, {"id": appointment_id})
        except RecordStoreError as e:
            self.logger.warning(
                "appointment_base_date_lookup_failed",
                appointment_id=str(appointment_id),
                error=e.message,
            )
            raise BaseDateUnavailableException() from e

        if not row or row.get("date_time") is None:
            raise BaseDateUnavailableException()

        return normalize_time(row["date_time"], field="date_time")

    async def _cancel(
        self,
        appointment_id: UUID,
        extra: dict[str, Any] | None = None,
        cancelled_at: datetime | None = None,
    ) -> tuple[AppointmentResponse, bool]:
        """
        Move an appointment to the cancelled state.

        The status write must succeed; the cancelled_at write that follows is
        best-effort and its failure is only logged.

        Args:
            appointment_id: Appointment ID
            extra: Other fields written together with the status
            cancelled_at: Explicit cancellation time, defaults to now

        Returns:
            The record after the status write, and whether a transition happened
        """
        try:
            current = await self.store.find_one(COLLECTION, {"id": appointment_id})
        except RecordStoreError as e:
            self.logger.error(
                "appointment_cancellation_lookup_failed",
                appointment_id=str(appointment_id),
                error=e.message,
            )
            raise LookupFailedException("Failed to look up appointment") from e

        if current is None:
            self.logger.info("appointment_not_found", appointment_id=str(appointment_id))
            raise NotFoundException("Appointment not found")

        if current.get("status") == AppointmentStatus.CANCELLED:
            self.logger.info("appointment_already_cancelled", appointment_id=str(appointment_id))
            if not extra:
                return AppointmentResponse.model_validate(current), False

            rows = await self.store.update(COLLECTION, {"id": appointment_id}, extra)
            if not rows:
                raise NotFoundException("Appointment not found")
            return AppointmentResponse.model_validate(rows[0]), False

        values = {**(extra or {}), "status": AppointmentStatus.CANCELLED.value}
        try:
            rows = await self.store.update(COLLECTION, {"id": appointment_id}, values)
        except RecordStoreError as e:
            self.logger.error(
                "appointment_status_update_failed",
                appointment_id=str(appointment_id),
                error=e.message,
            )
            raise StatusUpdateFailedException("Failed to cancel appointment") from e

        if not rows:
            # Deleted between the read and the write
            raise NotFoundException("Appointment not found")

        self.logger.info(
            "appointment_cancelled",
            appointment_id=str(appointment_id),
            previous_status=current.get("status"),
        )

        await self._record_cancellation_time(appointment_id, cancelled_at or self.clock())

        return AppointmentResponse.model_validate(rows[0]), True

    async def _record_cancellation_time(self, appointment_id: UUID, cancelled_at: datetime) -> bool:
        """Best-effort write of cancelled_at. Returns whether it was persisted."""
        try:
            rows = await self.store.update(
                COLLECTION,
                {"id": appointment_id},
                {"cancelled_at": cancelled_at},
            )
        except Exception as e:
            # Status already committed; the operation still succeeds
            self.logger.warning(
                "appointment_cancelled_at_write_failed",
                appointment_id=str(appointment_id),
                error=str(e),
            )
            return False

        if not rows:
            self.logger.warning(
                "appointment_cancelled_at_write_failed",
                appointment_id=str(appointment_id),
                error="no matching record",
            )
            return False

        return True
