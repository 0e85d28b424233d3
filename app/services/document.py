"""
Document lifecycle: upload, then extraction and analysis.

    (none)  --upload-->  pending  --process-->  processing
    processing  --extraction fails-->  error
    processing  --analysis fails-->    error
    processing  --both succeed-->      completed
    processing  --saving fails-->      error

Processing may be requested again for a document in error (or already
completed); it goes back through processing. Nothing is retried
automatically.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends
from supabase import Client

from app.config import ALLOWED_DOCUMENT_TYPES, DOCUMENTS_BUCKET, MAX_UPLOAD_BYTES
from app.database import get_supabase
from app.errors import AnalysisFailure, ExtractionFailure, InternalFailure, InvalidArgument, NotFound
from app.models.document import AnalysisStatus
from app.services.analyzer import DocumentAnalyzer, get_document_analyzer
from app.services.extractor import DocumentExtractor, get_document_extractor

logger = logging.getLogger("uvicorn.error")

EXTRACTION_ERROR = "Failed to extract document content"
ANALYSIS_ERROR = "AI analysis failed"
SAVE_ERROR = "Failed to save analysis"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def storage_path(user_id: str, file_name: str) -> str:
    """Collision-resistant storage key scoped to the user"""
    extension = file_name.rsplit(".", 1)[1].lower() if "." in file_name else "bin"
    return f"{DOCUMENTS_BUCKET}/{user_id}/{uuid.uuid4()}.{extension}"


def validate_upload(file_name: str, content_type: str, size: int) -> None:
    if size > MAX_UPLOAD_BYTES:
        raise InvalidArgument(
            f"Upload {file_name!r} is {size} bytes",
            "File size too large. Maximum 10MB allowed.",
        )
    if content_type not in ALLOWED_DOCUMENT_TYPES:
        raise InvalidArgument(
            f"Upload {file_name!r} has unsupported type {content_type!r}",
            "File type not supported",
        )


class DocumentService:
    def __init__(
        self,
        supabase: Client,
        extractor: DocumentExtractor,
        analyzer: DocumentAnalyzer,
    ):
        self.supabase = supabase
        self.extractor = extractor
        self.analyzer = analyzer

    def _bucket(self):
        return self.supabase.storage.from_(DOCUMENTS_BUCKET)

    async def upload(self, user_id: str, file_name: str, content_type: str, data: bytes) -> dict:
        """
        Store an uploaded file and record it as a pending document.

        Raises:
            InvalidArgument: If the file is too large or of an unsupported type
            InternalFailure: If storing the file or its metadata fails; a stored
                file whose metadata could not be saved is removed again
        """
        validate_upload(file_name, content_type, len(data))

        path = storage_path(user_id, file_name)
        try:
            self._bucket().upload(
                path=path,
                file=data,
                file_options={"content-type": content_type},
            )
        except Exception as e:
            logger.exception("Storage upload failed for user %s (%s)", user_id, path)
            raise InternalFailure(f"Storage upload failed for {path}") from e

        url = self._bucket().get_public_url(path)

        try:
            result = (
                self.supabase.table("documents")
                .insert({
                    "user_id": user_id,
                    "title": file_name,
                    "file_url": url,
                    "file_type": content_type,
                    "file_size": len(data),
                    "analysis_status": AnalysisStatus.PENDING.value,
                })
                .execute()
            )
            if not result.data:
                raise InternalFailure(f"Document insert returned no row for {path}")
        except Exception as e:
            logger.exception("Saving document metadata failed for user %s; removing %s", user_id, path)
            self._remove_stored(path)
            if isinstance(e, InternalFailure):
                raise
            raise InternalFailure(f"Document insert failed for {path}") from e

        document = result.data[0]
        logger.info("Stored document %s for user %s", document["id"], user_id)
        return {
            "documentId": document["id"],
            "url": url,
            "fileName": file_name,
            "fileSize": len(data),
        }

    def _remove_stored(self, path: str) -> None:
        try:
            self._bucket().remove([path])
        except Exception:
            logger.exception("Could not remove orphaned storage object %s", path)

    async def get_document(self, document_id: str, user_id: str) -> Optional[dict]:
        """Get a document by ID (with user verification)"""
        result = (
            self.supabase.table("documents")
            .select("*")
            .eq("id", document_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    async def list_documents(self, user_id: str) -> List[dict]:
        """Get all documents for a user, newest first"""
        result = (
            self.supabase.table("documents")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []

    def _set_status(self, document_id: str, user_id: str, status: AnalysisStatus, **fields) -> None:
        (
            self.supabase.table("documents")
            .update({"analysis_status": status.value, "updated_at": _now(), **fields})
            .eq("id", document_id)
            .eq("user_id", user_id)
            .execute()
        )
        logger.info("Document %s -> %s", document_id, status.value)

    async def process(self, document_id: str, user_id: str) -> dict:
        """
        Extract and analyze a document, recording the outcome on its row.

        Raises:
            NotFound: If no document with this id is owned by the user
            ExtractionFailure: If the text could not be extracted (status error)
            AnalysisFailure: If the analysis call failed (status error)
            InternalFailure: If the analysis could not be saved (status error)
        """
        document = await self.get_document(document_id, user_id)
        if not document:
            raise NotFound(
                f"Document {document_id} not found for user {user_id}",
                "Document not found",
            )

        self._set_status(document_id, user_id, AnalysisStatus.PROCESSING)

        try:
            text = await self.extractor.extract(document["file_url"], document["file_type"])
        except ExtractionFailure:
            logger.exception("Extraction failed for document %s (user %s)", document_id, user_id)
            self._set_status(
                document_id, user_id, AnalysisStatus.ERROR,
                analysis_result={"error": EXTRACTION_ERROR},
            )
            raise

        try:
            outcome = await self.analyzer.analyze(text)
        except AnalysisFailure:
            logger.exception("Analysis failed for document %s (user %s)", document_id, user_id)
            self._set_status(
                document_id, user_id, AnalysisStatus.ERROR,
                analysis_result={"error": ANALYSIS_ERROR},
            )
            raise

        analysis = {
            "content": text,
            "analysis": outcome.raw_text,
            "parsed_analysis": outcome.sections,
            "analysis_sections": outcome.sections,
            "processed_at": _now(),
            "word_count": len(text.split()),
            "character_count": len(text),
        }
        try:
            self._set_status(
                document_id, user_id, AnalysisStatus.COMPLETED,
                analysis_result=analysis,
                content=text,
            )
        except Exception as e:
            logger.exception("Saving analysis failed for document %s (user %s)", document_id, user_id)
            self._set_status(
                document_id, user_id, AnalysisStatus.ERROR,
                analysis_result={"error": SAVE_ERROR},
            )
            raise InternalFailure(f"Saving analysis failed for document {document_id}") from e

        return {
            "documentId": document_id,
            "status": AnalysisStatus.COMPLETED.value,
            "analysis": analysis,
        }


def get_document_service(
    supabase: Client = Depends(get_supabase),
    extractor: DocumentExtractor = Depends(get_document_extractor),
    analyzer: DocumentAnalyzer = Depends(get_document_analyzer),
) -> DocumentService:
    """Get document service instance"""
    return DocumentService(supabase, extractor, analyzer)
