from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from docqa.core.types import Chunk, Document
from docqa.indexing.document_store import DocumentRepository
from docqa.ingestion.chunker import CharChunker
from docqa.ingestion.extractor import TextExtractor
from docqa.ingestion.text_normalize import collapse_whitespace
from docqa.retrieval.candidates import CandidateSelector
from docqa.retrieval.keywords import extract_keywords
from docqa.retrieval.scoring import rank_chunks, score_chunk

logger = logging.getLogger(__name__)


def chunk_id(doc_id: str, chunk_index: int) -> str:
    return f"{doc_id}_chunk_{chunk_index}"


def clamp(value, low: int, high: int, default: int) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = default
    return max(low, min(v, high))


class LexicalRetriever:
    def __init__(
        self,
        repo: DocumentRepository,
        extractor: TextExtractor,
        chunker: Optional[CharChunker] = None,
        max_top_k: int = 10,
        max_doc_limit: int = 25,
        max_workers: int = 1,
    ):
        self.repo = repo
        self.extractor = extractor
        self.chunker = chunker or CharChunker()
        self.selector = CandidateSelector(repo)
        self.max_top_k = max_top_k
        self.max_doc_limit = max_doc_limit
        self.max_workers = max_workers

    def document_text(self, doc: Document) -> str:
        if doc.text and doc.text.strip():
            return doc.text

        try:
            extracted = self.extractor.extract_text(doc.path, doc.mime_type)
        except Exception as e:
            logger.warning("Failed to extract text from %s: %s", doc.path, e)
            return ""
        return extracted.text

    def _chunks_for(self, doc: Document, keywords: Sequence[str]) -> List[Chunk]:
        try:
            txt = collapse_whitespace(self.document_text(doc))
            if not txt:
                return []

            return [
                Chunk(
                    chunk_id=chunk_id(doc.id, i),
                    doc_id=doc.id,
                    doc_name=doc.name,
                    text=w.text,
                    start_char=w.start_char,
                    end_char=w.end_char,
                    score=score_chunk(w.text, keywords),
                )
                for i, w in enumerate(self.chunker.chunk(txt))
            ]
        except Exception as e:
            logger.warning("Failed to process document %s: %s", doc.id, e)
            return []

    def retrieve_chunks(
        self,
        question: str,
        doc_limit: int = 5,
        top_k: int = 5,
        explicit_doc_id: Optional[str] = None,
    ) -> List[Chunk]:
        doc_limit = clamp(doc_limit, 1, self.max_doc_limit, 5)
        top_k = clamp(top_k, 1, self.max_top_k, 5)
        keywords = extract_keywords(question)

        try:
            candidates = self.selector.select_candidates(question, doc_limit, explicit_doc_id)
        except Exception as e:
            logger.warning("Candidate selection failed: %s", e)
            return []

        if not candidates:
            return []

        # per-document results stay in candidate order whatever the completion order
        if self.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                per_doc = list(pool.map(lambda d: self._chunks_for(d, keywords), candidates))
        else:
            per_doc = [self._chunks_for(d, keywords) for d in candidates]

        all_chunks = [c for chunks in per_doc for c in chunks]
        top = rank_chunks(all_chunks, top_k)

        logger.debug(
            "Retrieved %d/%d chunks from %d candidate documents", len(top), len(all_chunks), len(candidates)
        )
        return top
