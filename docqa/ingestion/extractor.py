from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import List, Optional, Protocol

import fitz  # pymupdf
from docx import Document as DocxDocument

from docqa.core.errors import ExtractionError
from docqa.core.types import ExtractedText
from docqa.ingestion.text_normalize import collapse_whitespace

MIN_TEXT_LENGTH = 20

MIME_TXT = "text/plain"
MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MIME_TYPES = {MIME_TXT, MIME_PDF, MIME_DOCX}


class TextExtractor(Protocol):
    def extract_text(self, path: str, mime_type: str) -> ExtractedText: ...


def guess_mime_type(path: str) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in (".txt", ".md"):
        return MIME_TXT
    if suffix == ".docx":
        return MIME_DOCX
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def _read_pdf(path: str) -> str:
    parts: List[str] = []
    with fitz.open(path) as doc:
        for i in range(doc.page_count):
            txt = (doc.load_page(i).get_text("text") or "").strip()
            if txt:
                parts.append(txt)
    return "\n".join(parts)


def _read_docx(path: str) -> str:
    doc = DocxDocument(path)
    return "\n".join(p.text for p in doc.paragraphs if (p.text or "").strip())


class FileTextExtractor:
    """Reads plain text, PDF and DOCX files into whitespace-normalized text."""

    def __init__(self, min_text_length: int = MIN_TEXT_LENGTH):
        self.min_text_length = min_text_length

    def extract_text(self, path: Optional[str], mime_type: str) -> ExtractedText:
        if not path:
            raise ExtractionError("No file given", status_code=400, code="NO_FILE")
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise ExtractionError("Unsupported file type", status_code=415, code="UNSUPPORTED_MEDIA_TYPE")

        try:
            if mime_type == MIME_PDF:
                raw = _read_pdf(path)
            elif mime_type == MIME_DOCX:
                raw = _read_docx(path)
            else:
                raw = Path(path).read_text(encoding="utf-8")
        except Exception as e:
            raise ExtractionError(f"{Path(path).name} could not be processed: {e}") from e

        txt = collapse_whitespace(raw)
        if len(txt) < self.min_text_length:
            raise ExtractionError("No extractable text (scanned PDF?)", code="EMPTY_OR_TOO_SHORT")

        return ExtractedText(text=txt, char_count=len(txt))
