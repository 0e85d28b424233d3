from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, List
from datetime import datetime
from uuid import UUID

from app.models.document import AnalysisStatus


class UploadResponse(BaseModel):
    documentId: UUID
    url: str
    fileName: str
    fileSize: int


class ProcessRequest(BaseModel):
    document_id: Optional[UUID] = Field(None, alias="documentId")

    model_config = {"populate_by_name": True}


class ProcessResponse(BaseModel):
    documentId: UUID
    status: AnalysisStatus
    analysis: Dict[str, Any]


class DocumentResponse(BaseModel):
    id: UUID
    title: str
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    analysis_status: AnalysisStatus
    analysis_result: Optional[Dict[str, Any]] = None
    content: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DocumentList(BaseModel):
    documents: List[DocumentResponse]
