"""Document endpoints."""

from uuid import UUID

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from app.dependencies import Blobs, DocumentId, Store
from app.schemas.appointments import MessageResponse
from app.schemas.documents import DocumentResponse, DocumentUpdate
from app.services.document_service import DocumentService

router = APIRouter()


@router.get(
    "/",
    response_model=list[DocumentResponse],
    status_code=status.HTTP_200_OK,
    summary="List documents",
)
async def list_documents(
    store: Store,
    patient_id: UUID | None = Query(None),
    doctor_id: UUID | None = Query(None),
) -> list[DocumentResponse]:
    """
    List documents, optionally filtered.

    Args:
        store: Record store
        patient_id: Filter by patient
        doctor_id: Filter by doctor

    Returns:
        Matching documents
    """
    service = DocumentService(store)
    return await service.list_documents(patient_id, doctor_id)


@router.get(
    "/type",
    response_model=list[DocumentResponse],
    status_code=status.HTTP_200_OK,
    summary="List a patient's documents by type",
)
async def list_documents_by_type(
    store: Store,
    patient_id: UUID | None = Query(None),
    document_type: str | None = Query(None),
) -> list[DocumentResponse]:
    """List a patient's documents of a given type."""
    service = DocumentService(store)
    return await service.list_by_type(patient_id, document_type)


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get document by ID",
)
async def get_document(document_id: DocumentId, store: Store) -> DocumentResponse:
    """Get a document by ID."""
    service = DocumentService(store)
    return await service.get_document(document_id)


@router.post(
    "/",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
)
async def upload_document(
    store: Store,
    blob_store: Blobs,
    patient_id: UUID | None = Form(None),
    document_name: str | None = Form(None),
    document_type: str | None = Form(None),
    doctor_id: UUID | None = Form(None),
    notes: str | None = Form(None),
    document_url: str | None = Form(None),
    file: UploadFile | None = File(None),
) -> DocumentResponse:
    """
    Upload a document file, or register one already hosted elsewhere.

    Args:
        store: Record store
        blob_store: File storage
        patient_id: Owning patient
        document_name: Display name
        document_type: Category
        doctor_id: Related doctor
        notes: Free text
        document_url: Hosted URL used when no file is sent
        file: Uploaded file

    Returns:
        Created document
    """
    content = await file.read() if file is not None else None

    service = DocumentService(store, blob_store)
    return await service.upload_document(
        patient_id=patient_id,
        document_name=document_name,
        document_type=document_type,
        doctor_id=doctor_id,
        notes=notes,
        content=content,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        document_url=document_url,
    )


@router.put(
    "/{document_id}",
    response_model=DocumentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update document details",
)
async def update_document(
    document_id: DocumentId,
    data: DocumentUpdate,
    store: Store,
) -> DocumentResponse:
    """Update a document's name, type or notes."""
    service = DocumentService(store)
    return await service.update_document(document_id, data)


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete document",
)
async def delete_document(document_id: DocumentId, store: Store) -> MessageResponse:
    """Delete a document record."""
    service = DocumentService(store)
    await service.delete_document(document_id)
    return MessageResponse(message="Document deleted successfully")
