import io
import logging
from typing import Optional

import httpx
from docx import Document as DocxDocument
from pypdf import PdfReader

from app.config import (
    DOWNLOAD_TIMEOUT_SECONDS,
    MAX_DOCUMENT_CHARS,
    PDF_TYPE,
    PLAIN_TEXT_TYPES,
    TRUNCATION_MARKER,
    WORD_TYPES,
)
from app.errors import ExtractionFailure

logger = logging.getLogger("uvicorn.error")


def truncate_text(text: str, limit: int = MAX_DOCUMENT_CHARS) -> str:
    """Cap text at `limit` characters, appending the truncation marker when cut"""
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def pdf_to_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages).strip()


def docx_to_text(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in doc.paragraphs).strip()


def bytes_to_text(data: bytes, file_type: str) -> str:
    """
    Decode a stored file into plain text according to its declared MIME type.

    Plain text and markdown pass through unchanged. NUL characters are
    dropped for every type (Postgres text columns cannot store them). Types
    without a decoder yield an empty string.
    """
    if file_type in PLAIN_TEXT_TYPES:
        text = data.decode("utf-8", errors="replace")
    elif file_type == PDF_TYPE:
        text = pdf_to_text(data)
    elif file_type in WORD_TYPES:
        text = docx_to_text(data)
    else:
        return ""
    return text.replace("\x00", "")


class DocumentExtractor:
    def __init__(
        self,
        timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport

    async def download(self, file_url: str) -> bytes:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(file_url)
            response.raise_for_status()
            return response.content

    async def extract(self, file_url: str, file_type: str) -> str:
        """
        Download a stored document and extract its text, truncated for prompting.

        Raises:
            ExtractionFailure: If the download or decoding fails
        """
        try:
            data = await self.download(file_url)
            text = bytes_to_text(data, file_type or "")
        except Exception as e:
            raise ExtractionFailure(f"Could not extract {file_type} from {file_url}: {e}") from e

        return truncate_text(text)


_document_extractor = DocumentExtractor()


def get_document_extractor() -> DocumentExtractor:
    """Get document extractor instance"""
    return _document_extractor
