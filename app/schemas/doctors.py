"""Doctor schemas for request/response validation."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# ============================================================================
# Request Schemas
# ============================================================================


class DoctorCreate(BaseModel):
    """Schema for creating a doctor."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    specialty: str = Field(..., min_length=1, max_length=200)
    phone: str | None = Field(None, max_length=20)
    experience: int | None = Field(None, ge=0)
    education: str | None = None
    bio: str | None = None
    office_hours: str | None = None
    office_location: str | None = None
    office_phone: str | None = Field(None, max_length=20)
    accepting_new_patients: bool | None = None
    image: str | None = None


class DoctorUpdate(BaseModel):
    """
    Schema for updating a doctor.

    Both snake_case and camelCase field names are accepted
    (``office_hours`` or ``officeHours``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = Field(None, min_length=3, max_length=255)
    specialty: str | None = Field(None, min_length=1, max_length=200)
    phone: str | None = Field(None, max_length=20)
    experience: int | None = Field(None, ge=0)
    education: str | None = None
    bio: str | None = None
    office_hours: str | None = None
    office_location: str | None = None
    office_phone: str | None = Field(None, max_length=20)
    accepting_new_patients: bool | None = None
    image: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    review_count: int | None = Field(None, ge=0)


class DoctorAvailabilityUpdate(BaseModel):
    """Schema for replacing a doctor's availability."""

    availability: dict[str, Any]


# ============================================================================
# Response Schemas
# ============================================================================


class DoctorSummary(BaseModel):
    """Doctor fields embedded in appointment responses."""

    id: UUID
    name: str
    specialty: str | None = None


class DoctorResponse(BaseModel):
    """Doctor response schema, serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: UUID
    name: str
    email: str
    phone: str | None = None
    specialty: str
    experience: int = 0
    education: str = "Not specified"
    bio: str = "No bio available"
    office_hours: str = "Please contact for availability"
    office_location: str = "Location not specified"
    office_phone: str | None = None
    accepting_new_patients: bool = True
    image: str | None = None
    rating: float = 0.0
    review_count: int = 0
    availability: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = Field(None, alias="created_at")

    @model_validator(mode="before")
    @classmethod
    def apply_defaults(cls, data: Any) -> Any:
        """Drop empty columns so defaults apply; office phone falls back to phone."""
        if not isinstance(data, dict):
            return data

        cleaned = {key: value for key, value in data.items() if value is not None}
        if "office_phone" not in cleaned and "officePhone" not in cleaned:
            cleaned["office_phone"] = cleaned.get("phone")
        return cleaned
