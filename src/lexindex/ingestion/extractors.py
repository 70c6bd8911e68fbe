from __future__ import annotations

import io
import logging
import os

import fitz  # PyMuPDF
from docx import Document as DocxDocument

from lexindex.core.errors import UnsupportedFileTypeError
from .chunking import PAGE_BREAK
from .utils import normalize_newlines

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"

_EXTENSION_TYPES = {
    ".pdf": PDF_MIME,
    ".docx": DOCX_MIME,
    ".txt": TEXT_MIME,
    ".md": TEXT_MIME,
}


def extract_pdf_text(data: bytes, max_pages: int = None) -> str:
    """Page texts joined by the form-feed page-break marker."""
    pages: list[str] = []
    with fitz.open(stream=data, filetype="pdf") as doc:
        n = doc.page_count
        limit = min(n, max_pages) if max_pages else n
        for i in range(limit):
            page = doc.load_page(i)
            pages.append(normalize_newlines(page.get_text("text") or "").strip())
    return PAGE_BREAK.join(pages)


def extract_docx_text(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))
    paragraphs = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]
    return "\n\n".join(paragraphs)


def extract_plain_text(data: bytes) -> str:
    return normalize_newlines(data.decode("utf-8", errors="replace"))


def _resolve_type(filename: str, content_type: str = None) -> str:
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime in {PDF_MIME, DOCX_MIME, TEXT_MIME}:
            return mime
    ext = os.path.splitext(filename or "")[1].lower()
    return _EXTENSION_TYPES.get(ext, content_type or ext or "unknown")


def extract_text(
    data: bytes, filename: str, content_type: str = None, max_pages: int = None
) -> str:
    """
    Extract plain text from an uploaded PDF, DOCX or TXT file.
    max_pages only applies to PDFs.
    Raises UnsupportedFileTypeError for anything else.
    """
    kind = _resolve_type(filename, content_type)
    if kind == PDF_MIME:
        text = extract_pdf_text(data, max_pages=max_pages)
    elif kind == DOCX_MIME:
        text = extract_docx_text(data)
    elif kind == TEXT_MIME:
        text = extract_plain_text(data)
    else:
        raise UnsupportedFileTypeError(
            "Unsupported file type",
            context={"filename": filename, "content_type": content_type},
        )
    logger.info(
        "Extracted %d chars from %s (%s)", len(text), filename or "<upload>", kind
    )
    return text
