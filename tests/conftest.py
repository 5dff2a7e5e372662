from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from docqa.core.types import Chunk, Document, ExtractedText, SearchHit
from docqa.core.errors import ExtractionError


BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_doc(doc_id: str, text: Optional[str], name: Optional[str] = None, minutes: int = 0, **kw) -> Document:
    return Document(
        id=doc_id,
        name=name or f"{doc_id}.txt",
        mime_type=kw.pop("mime_type", "text/plain"),
        text=text,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        **kw,
    )


class FakeRepo:
    """Repository whose search results come back in a fixed order."""

    def __init__(self, docs: List[Document], search_ids: Optional[List[str]] = None, search_error: Optional[Exception] = None):
        self.docs = {d.id: d for d in docs}
        self.order = [d.id for d in docs]
        self.search_ids = search_ids or []
        self.search_error = search_error
        self.search_calls = []
        self.recent_calls = []

    def get_by_id(self, doc_id):
        return self.docs.get(doc_id)

    def list_recent(self, limit):
        self.recent_calls.append(limit)
        return [self.docs[i] for i in reversed(self.order)][:limit]

    def search_by_keywords(self, query, limit):
        self.search_calls.append((query, limit))
        if self.search_error is not None:
            raise self.search_error
        return [SearchHit(id=i, name=i) for i in self.search_ids][:limit]


class FakeExtractor:
    def __init__(self, texts=None):
        self.texts = texts or {}
        self.calls = []

    def extract_text(self, path, mime_type):
        self.calls.append(path)
        if path not in self.texts:
            raise ExtractionError("No extractable text (scanned PDF?)", code="EMPTY_OR_TOO_SHORT")
        txt = self.texts[path]
        return ExtractedText(text=txt, char_count=len(txt))


@pytest.fixture
def retrieved_chunks() -> List[Chunk]:
    return [
        Chunk(
            chunk_id="doc123_chunk_0",
            doc_id="doc123",
            doc_name="policy.pdf",
            text="Line1\nLine2\tLine3 " + "A" * 400,
            start_char=100,
            end_char=300,
            score=1.0,
        ),
        Chunk(
            chunk_id="doc999_chunk_1",
            doc_id="doc999",
            doc_name="notes.txt",
            text="Hello world. This is a second document with some content.",
            start_char=0,
            end_char=120,
            score=0.5,
        ),
        Chunk(
            chunk_id="doc777_chunk_0",
            doc_id="doc777",
            doc_name="guide.pdf",
            text="Third chunk text. " + "B" * 220,
            start_char=0,
            end_char=200,
            score=0.5,
        ),
    ]
