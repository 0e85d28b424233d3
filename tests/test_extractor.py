"""
Document text extraction.

Run with: pytest tests/test_extractor.py -v
"""
import asyncio
import io

import httpx
import pytest
from docx import Document as DocxDocument
from pypdf import PdfWriter

from app.config import MAX_DOCUMENT_CHARS, TRUNCATION_MARKER
from app.errors import ExtractionFailure
from app.services.extractor import DocumentExtractor, bytes_to_text, truncate_text

URL = "https://storage.test/public/documents/doc.bin"

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def serve(content: bytes, status: int = 200) -> DocumentExtractor:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=content)

    return DocumentExtractor(transport=httpx.MockTransport(handler))


def make_docx(*paragraphs) -> bytes:
    doc = DocxDocument()
    for text in paragraphs:
        doc.add_paragraph(text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def make_blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def make_text_pdf(*pages) -> bytes:
    """Minimal PDF with one line of Helvetica text per page"""
    kids = " ".join(f"{4 + 2 * i} 0 R" for i in range(len(pages)))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(pages):
        stream = f"BT /F1 12 Tf 20 100 Td ({text}) Tj ET".encode()
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 300 200] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>".encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref)
    return bytes(out)


class TestTruncateText:
    def test_short_text_untouched(self):
        assert truncate_text("hello world") == "hello world"

    def test_exact_limit_untouched(self):
        text = "x" * MAX_DOCUMENT_CHARS
        assert truncate_text(text) == text

    def test_long_text_cut_with_marker(self):
        text = "y" * (MAX_DOCUMENT_CHARS + 500)
        result = truncate_text(text)
        assert result == "y" * MAX_DOCUMENT_CHARS + TRUNCATION_MARKER
        assert len(result) == MAX_DOCUMENT_CHARS + len(TRUNCATION_MARKER)


class TestBytesToText:
    def test_plain_text_passthrough(self):
        assert bytes_to_text(b"hello world", "text/plain") == "hello world"

    def test_markdown_passthrough(self):
        assert bytes_to_text(b"# Title\n\n- point", "text/markdown") == "# Title\n\n- point"

    def test_invalid_utf8_replaced(self):
        assert bytes_to_text(b"caf\xe9", "text/plain") == "caf\ufffd"

    def test_nul_characters_dropped(self):
        assert bytes_to_text(b"a\x00b\x00c", "text/plain") == "abc"

    def test_docx(self):
        data = make_docx("First paragraph.", "Second paragraph.")
        assert bytes_to_text(data, DOCX_TYPE) == "First paragraph.\nSecond paragraph."

    def test_pdf_pages_joined_in_order(self):
        text = bytes_to_text(make_text_pdf("First page", "Second page"), "application/pdf")

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        assert lines == ["First page", "Second page"]
        assert text == text.strip()

    def test_blank_pdf_yields_empty_text(self):
        assert bytes_to_text(make_blank_pdf(), "application/pdf") == ""

    def test_unknown_type_yields_empty_text(self):
        assert bytes_to_text(b"\x89PNG", "image/png") == ""


class TestDocumentExtractor:
    def test_extracts_plain_text(self):
        text = asyncio.run(serve(b"hello world").extract(URL, "text/plain"))
        assert text == "hello world"

    def test_extracts_pdf(self):
        text = asyncio.run(serve(make_text_pdf("Revenue plan")).extract(URL, "application/pdf"))
        assert text.strip() == "Revenue plan"

    def test_truncates_long_documents(self):
        data = ("z" * (MAX_DOCUMENT_CHARS + 1)).encode()
        text = asyncio.run(serve(data).extract(URL, "text/plain"))
        assert text == "z" * MAX_DOCUMENT_CHARS + TRUNCATION_MARKER

    def test_download_failure(self):
        with pytest.raises(ExtractionFailure) as excinfo:
            asyncio.run(serve(b"", status=404).extract(URL, "text/plain"))
        assert isinstance(excinfo.value.__cause__, httpx.HTTPStatusError)
        assert excinfo.value.user_message == "Failed to process document"

    def test_corrupt_pdf(self):
        with pytest.raises(ExtractionFailure):
            asyncio.run(serve(b"this is not a pdf").extract(URL, "application/pdf"))

    def test_corrupt_docx(self):
        with pytest.raises(ExtractionFailure):
            asyncio.run(serve(b"not a zip archive").extract(URL, DOCX_TYPE))
