"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.doctors import DoctorSummary


class AppointmentStatus(str, Enum):
    """
    Appointment status.

    Only ``scheduled`` and ``cancelled`` carry behaviour. Any other non-blank
    string is accepted and wrapped in an ``OTHER`` pseudo-member that keeps the
    raw value, so ``AppointmentStatus("confirmed").value == "confirmed"``.
    """

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"

    @classmethod
    def _missing_(cls, value: object) -> "AppointmentStatus | None":
        if not isinstance(value, str) or not value.strip():
            return None
        member = str.__new__(cls, value)
        member._name_ = "OTHER"
        member._value_ = value
        return member


class AppointmentCreate(BaseModel):
    """
    Schema for creating a new appointment.

    Time fields are taken as submitted and resolved by the service, so a value
    of the wrong type is reported as an invalid time rather than a schema error.
    """

    patient_id: UUID | None = None
    doctor_id: UUID | None = None
    date_time: Any = None
    start_time: Any = None
    end_time: Any = None
    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=1000)


class AppointmentUpdate(BaseModel):
    """
    Schema for partial appointment updates.

    Time fields stay raw here: they may be full timestamps or bare ``HH:MM``
    clock times and are resolved by the service.
    """

    model_config = ConfigDict(extra="forbid")

    patient_id: UUID | None = None
    doctor_id: UUID | None = None
    date_time: Any = None
    start_time: Any = None
    end_time: Any = None
    status: AppointmentStatus | None = None
    cancelled_at: Any = None
    notes: str | None = Field(None, max_length=1000)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly sent by the client."""
        return self.model_dump(exclude_unset=True)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    date_time: datetime
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: AppointmentStatus
    notes: str | None = None
    created_at: datetime | None = None
    cancelled_at: datetime | None = None
    doctor: DoctorSummary | None = None

    model_config = {"from_attributes": True}


class CancelAppointmentResponse(BaseModel):
    """Schema for the dedicated cancel operation."""

    message: str
    appointment: AppointmentResponse


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
