from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile

from app.auth import AuthUser, get_current_user
from app.errors import InvalidArgument, NotFound
from app.schemas.document import (
    DocumentList,
    DocumentResponse,
    ProcessRequest,
    ProcessResponse,
    UploadResponse,
)
from app.services.document import DocumentService, get_document_service, validate_upload

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    user: AuthUser = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service),
):
    """Upload a document (PDF, Word, text or markdown, up to 10MB)"""
    if file is None:
        raise InvalidArgument("Upload without a file part", "No file provided")

    # Reject oversized or unsupported uploads before buffering them
    if file.size is not None:
        validate_upload(file.filename or "document", file.content_type or "", file.size)

    data = await file.read()
    await file.close()

    return await document_service.upload(
        user_id=user.id,
        file_name=file.filename or "document",
        content_type=file.content_type or "",
        data=data,
    )


@router.post("/process", response_model=ProcessResponse)
async def process_document(
    request: ProcessRequest,
    user: AuthUser = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service),
):
    """Extract and analyze an uploaded document"""
    if request.document_id is None:
        raise InvalidArgument("Process request without a document id", "Document ID required")
    return await document_service.process(str(request.document_id), user.id)


@router.get("", response_model=DocumentList)
async def get_documents(
    user: AuthUser = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service),
):
    """Get all documents for the current user"""
    return {"documents": await document_service.list_documents(user.id)}


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    user: AuthUser = Depends(get_current_user),
    document_service: DocumentService = Depends(get_document_service),
):
    """Get a document with its analysis"""
    document = await document_service.get_document(str(document_id), user.id)
    if not document:
        raise NotFound(f"Document {document_id} not found for user {user.id}", "Document not found")
    return document
