from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from docqa.core.errors import DuplicateDocumentError
from docqa.core.types import Document, SearchHit


class DocumentRepository(Protocol):
    """Read-only view of the document corpus used by retrieval."""

    def get_by_id(self, doc_id: str) -> Optional[Document]: ...

    def list_recent(self, limit: int) -> List[Document]: ...

    def search_by_keywords(self, query: str, limit: int) -> List[SearchHit]: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _query_terms(query: str) -> List[str]:
    return [t.replace('"', "").replace("'", "").replace("*", "").lower() for t in (query or "").split()]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class InMemoryDocumentStore:
    def __init__(self, documents: Optional[List[Document]] = None):
        self._docs: Dict[str, Document] = {}
        self._order: List[str] = []
        for d in documents or []:
            self.add_document(d)

    def add_document(self, doc: Document) -> Document:
        existing = self.get_by_sha256(doc.sha256) if doc.sha256 else None
        if existing is not None:
            raise DuplicateDocumentError(existing.id)
        self._docs[doc.id] = doc
        self._order.append(doc.id)
        return doc

    def get_by_id(self, doc_id: str) -> Optional[Document]:
        return self._docs.get(doc_id)

    def get_by_sha256(self, sha256: str) -> Optional[Document]:
        for d in self._docs.values():
            if d.sha256 == sha256:
                return d
        return None

    def _newest_first(self) -> List[Document]:
        # insertion order breaks ties between equal timestamps
        docs = [self._docs[i] for i in reversed(self._order)]
        return sorted(docs, key=lambda d: d.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)

    def list_recent(self, limit: int) -> List[Document]:
        return self._newest_first()[: max(0, limit)]

    def search_by_keywords(self, query: str, limit: int) -> List[SearchHit]:
        terms = [t for t in _query_terms(query) if t]
        if not terms:
            return []

        scored = []
        for d in self._newest_first():
            haystack = f"{d.name} {d.text or ''}".lower()
            matched = sum(1 for t in terms if t in haystack)
            if matched:
                scored.append((matched, d))

        scored.sort(key=lambda x: x[0], reverse=True)
        return [SearchHit(id=d.id, name=d.name, score=float(m)) for m, d in scored[: max(0, limit)]]


class SQLDocumentStore:
    def __init__(self, dsn: str):
        if dsn.startswith("sqlite:///"):
            Path(dsn[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        self.engine: Engine = create_engine(dsn, pool_pre_ping=True, future=True)
        self.create_schema()

    def create_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("""
            CREATE TABLE IF NOT EXISTS documents (
              id VARCHAR(64) PRIMARY KEY,
              name VARCHAR(512) NOT NULL,
              mime_type VARCHAR(128) NOT NULL,
              path TEXT,
              sha256 VARCHAR(64) UNIQUE,
              created_at VARCHAR(40) NOT NULL,
              content_text TEXT
            );
            """))

    def add_document(self, doc: Document) -> Document:
        if doc.sha256:
            existing = self.get_by_sha256(doc.sha256)
            if existing is not None:
                raise DuplicateDocumentError(existing.id)

        doc_id = doc.id or str(uuid.uuid4())
        created_at = doc.created_at or _now()
        with self.engine.begin() as conn:
            conn.execute(
                text("""
                INSERT INTO documents (id, name, mime_type, path, sha256, created_at, content_text)
                VALUES (:id, :name, :mime_type, :path, :sha256, :created_at, :content_text);
                """),
                {
                    "id": doc_id,
                    "name": doc.name,
                    "mime_type": doc.mime_type,
                    "path": doc.path,
                    "sha256": doc.sha256,
                    "created_at": created_at.isoformat(),
                    "content_text": doc.text,
                },
            )
        return self.get_by_id(doc_id)  # type: ignore[return-value]

    def get_by_id(self, doc_id: str) -> Optional[Document]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM documents WHERE id = :id"), {"id": doc_id}
            ).mappings().first()
        return _row_to_document(row) if row else None

    def get_by_sha256(self, sha256: str) -> Optional[Document]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM documents WHERE sha256 = :sha256"), {"sha256": sha256}
            ).mappings().first()
        return _row_to_document(row) if row else None

    def list_recent(self, limit: int) -> List[Document]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                text("SELECT * FROM documents ORDER BY created_at DESC LIMIT :limit"),
                {"limit": max(0, limit)},
            ).mappings().all()
        return [_row_to_document(r) for r in rows]

    def search_by_keywords(self, query: str, limit: int) -> List[SearchHit]:
        terms = [t for t in _query_terms(query) if t]
        if not terms:
            return []

        # one point per matched term, same as the in-memory store
        cases = []
        params: Dict[str, Any] = {"limit": max(0, limit)}
        for i, term in enumerate(terms):
            params[f"t{i}"] = f"%{_escape_like(term)}%"
            cases.append(
                f"CASE WHEN lower(name) LIKE :t{i} ESCAPE '\\' "
                f"OR lower(COALESCE(content_text, '')) LIKE :t{i} ESCAPE '\\' "
                f"THEN 1 ELSE 0 END"
            )

        score_sql = " + ".join(cases)
        sql = text(f"""
        SELECT id, name, score
        FROM (
          SELECT id, name, created_at, ({score_sql}) AS score
          FROM documents
        ) AS scored
        WHERE score > 0
        ORDER BY score DESC, created_at DESC
        LIMIT :limit;
        """)

        with self.engine.connect() as conn:
            rows = conn.execute(sql, params).mappings().all()
        return [SearchHit(id=r["id"], name=r["name"], score=float(r["score"])) for r in rows]


def _row_to_document(r) -> Document:
    created = r["created_at"]
    return Document(
        id=r["id"],
        name=r["name"],
        mime_type=r["mime_type"],
        text=r["content_text"] or None,
        path=r["path"],
        sha256=r["sha256"],
        created_at=datetime.fromisoformat(created) if isinstance(created, str) else created,
    )
