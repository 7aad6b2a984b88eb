"""Document schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DocumentUpdate(BaseModel):
    """Schema for updating document details."""

    model_config = ConfigDict(extra="forbid")

    document_name: str | None = Field(None, min_length=1, max_length=255)
    document_type: str | None = Field(None, min_length=1, max_length=100)
    notes: str | None = Field(None, max_length=1000)


class DocumentResponse(BaseModel):
    """Schema for document response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID | None = None
    document_name: str
    document_type: str
    document_url: str
    notes: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
