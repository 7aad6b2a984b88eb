"""Document service for patient document records and uploads."""

import time
from pathlib import PurePath
from typing import Any
from uuid import UUID

import structlog

from app.core.blob_store import BlobStore
from app.core.exceptions import BadRequestException, NotFoundException
from app.core.record_store import RecordStore
from app.schemas.documents import DocumentResponse, DocumentUpdate

COLLECTION = "documents"

logger = structlog.get_logger(__name__)


def build_document_path(patient_id: UUID, filename: str | None, now: float | None = None) -> str:
    """
    Build the storage key for an uploaded file.

    The original file extension is kept and the name replaced by a
    millisecond timestamp: ``patients/<patient_id>/<millis><ext>``.
    """
    extension = PurePath(filename or "").suffix
    millis = int((now if now is not None else time.time()) * 1000)
    return f"patients/{patient_id}/{millis}{extension}"


class DocumentService:
    """Service for managing patient documents."""

    def __init__(self, store: RecordStore, blob_store: BlobStore | None = None):
        """Initialize service with record store and blob store."""
        self.store = store
        self.blob_store = blob_store

    async def list_documents(
        self,
        patient_id: UUID | None = None,
        doctor_id: UUID | None = None,
    ) -> list[DocumentResponse]:
        """List documents, optionally filtered by patient and doctor."""
        filters: dict[str, Any] = {}
        if patient_id:
            filters["patient_id"] = patient_id
        if doctor_id:
            filters["doctor_id"] = doctor_id

        rows = await self.store.find(COLLECTION, filters, order_by="created_at")
        return [DocumentResponse.model_validate(row) for row in rows]

    async def list_by_type(
        self,
        patient_id: UUID | None,
        document_type: str | None,
    ) -> list[DocumentResponse]:
        """
        List a patient's documents of one type.

        Raises:
            BadRequestException: If patient or type is missing
        """
        if not patient_id or not document_type:
            raise BadRequestException("Patient ID and document type are required")

        rows = await self.store.find(
            COLLECTION,
            {"patient_id": patient_id, "document_type": document_type},
            order_by="created_at",
        )
        return [DocumentResponse.model_validate(row) for row in rows]

    async def get_document(self, document_id: UUID) -> DocumentResponse:
        """
        Get document by ID.

        Raises:
            NotFoundException: If document not found
        """
        row = await self.store.find_one(COLLECTION, {"id": document_id})
        if not row:
            raise NotFoundException("Document not found")
        return DocumentResponse.model_validate(row)

    async def upload_document(
        self,
        patient_id: UUID | None,
        document_name: str | None,
        document_type: str | None,
        doctor_id: UUID | None = None,
        notes: str | None = None,
        content: bytes | None = None,
        filename: str | None = None,
        content_type: str | None = None,
        document_url: str | None = None,
    ) -> DocumentResponse:
        """
        Store a document record, uploading the file first when one is given.

        Args:
            patient_id: Owning patient
            document_name: Display name
            document_type: Free-form category (e.g. "lab_result")
            doctor_id: Related doctor, if any
            notes: Free text
            content: Uploaded file bytes
            filename: Original file name, used for the extension
            content_type: MIME type of the upload
            document_url: Already hosted URL, used when no file is sent

        Returns:
            Created document

        Raises:
            BadRequestException: If required fields or the file/URL are missing
        """
        if not patient_id or not document_name or not document_type:
            raise BadRequestException("Patient ID, document name, and document type are required")

        if content is not None:
            if self.blob_store is None:
                raise BadRequestException("Document uploads are not available")
            path = build_document_path(patient_id, filename)
            await self.blob_store.upload(path, content, content_type)
            document_url = self.blob_store.get_public_url(path)
        elif not document_url:
            raise BadRequestException("No document file or URL provided")

        row = await self.store.insert(
            COLLECTION,
            {
                "patient_id": patient_id,
                "doctor_id": doctor_id,
                "document_name": document_name,
                "document_type": document_type,
                "document_url": document_url,
                "notes": notes,
            },
        )

        logger.info("document_created", document_id=str(row["id"]), patient_id=str(patient_id))
        return DocumentResponse.model_validate(row)

    async def update_document(self, document_id: UUID, data: DocumentUpdate) -> DocumentResponse:
        """
        Update document details.

        Raises:
            BadRequestException: If no field was provided
            NotFoundException: If document not found
        """
        values = data.model_dump(exclude_unset=True)
        if not values:
            raise BadRequestException("No update data provided")

        rows = await self.store.update(COLLECTION, {"id": document_id}, values)
        if not rows:
            raise NotFoundException("Document not found")
        return DocumentResponse.model_validate(rows[0])

    async def delete_document(self, document_id: UUID) -> None:
        """
        Delete a document record. The stored file is kept.

        Raises:
            NotFoundException: If document not found
        """
        deleted = await self.store.delete(COLLECTION, {"id": document_id})
        if not deleted:
            raise NotFoundException("Document not found")
        logger.info("document_deleted", document_id=str(document_id))
