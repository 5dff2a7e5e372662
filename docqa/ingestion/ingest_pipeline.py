from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional

from docqa.core.errors import DuplicateDocumentError
from docqa.core.types import Document
from docqa.ingestion.extractor import FileTextExtractor, guess_mime_type

logger = logging.getLogger(__name__)


def sha256_file(path: str) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(1 << 16), b""):
            h.update(block)
    return h.hexdigest()


def doc_id_from_hash(sha256: str) -> str:
    # stable doc_id for idempotency
    return f"doc_{sha256[:12]}"


class Ingestor:
    def __init__(self, store, extractor: Optional[FileTextExtractor] = None):
        self.store = store
        self.extractor = extractor or FileTextExtractor()

    def ingest_file(self, path: str, name: Optional[str] = None, mime_type: Optional[str] = None) -> str:
        p = Path(path)
        digest = sha256_file(path)

        existing = self.store.get_by_sha256(digest)
        if existing is not None:
            logger.info("%s already ingested as %s", p.name, existing.id)
            return existing.id

        mime = mime_type or guess_mime_type(path)
        extracted = self.extractor.extract_text(str(p.resolve()), mime)

        doc = Document(
            id=doc_id_from_hash(digest),
            name=name or p.name,
            mime_type=mime,
            text=extracted.text,
            path=str(p.resolve()),
            sha256=digest,
        )
        try:
            saved = self.store.add_document(doc)
        except DuplicateDocumentError as e:
            return e.doc_id

        logger.info("Ingested %s as %s (%d chars)", p.name, saved.id, extracted.char_count)
        return saved.id
