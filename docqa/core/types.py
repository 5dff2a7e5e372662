from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Document:
    id: str
    name: str
    mime_type: str
    text: Optional[str] = None
    path: Optional[str] = None          # stored file, used when text is missing
    sha256: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SearchHit:
    id: str
    name: str
    score: Optional[float] = None


@dataclass(frozen=True)
class TextWindow:
    text: str
    start_char: int
    end_char: int


@dataclass(frozen=True)
class Chunk:
    chunk_id: str                       # "<doc_id>_chunk_<index>"
    doc_id: str
    doc_name: str
    text: str
    start_char: int
    end_char: int
    score: float = 0.0


@dataclass(frozen=True)
class Citation:
    doc_id: str
    doc_name: str
    chunk_id: str
    start_char: int
    end_char: int
    quote: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "doc_name": self.doc_name,
            "chunk_id": self.chunk_id,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "quote": self.quote,
        }


@dataclass(frozen=True)
class ExtractedText:
    text: str
    char_count: int


@dataclass(frozen=True)
class AnswerResult:
    answer: str
    confidence: str
    citations: List[Citation] = field(default_factory=list)
    parsed: bool = True
