from __future__ import annotations

import logging
from typing import List, Optional

from docqa.core.types import Document
from docqa.indexing.document_store import DocumentRepository
from docqa.retrieval.keywords import extract_keywords

logger = logging.getLogger(__name__)

SEARCH_KEYWORDS = 3


class CandidateSelector:
    """
    Picks the documents that take part in retrieval for a question.

    Order of preference: explicit document id, keyword-search shortlist,
    most recent documents. The returned order is the discovery order used
    for tie-breaking during ranking.
    """

    def __init__(self, repo: DocumentRepository):
        self.repo = repo

    def select_candidates(
        self,
        question: str,
        doc_limit: int,
        explicit_doc_id: Optional[str] = None,
    ) -> List[Document]:
        if explicit_doc_id:
            doc = self.repo.get_by_id(explicit_doc_id)
            # an unknown explicit target must not leak other documents
            return [doc] if doc is not None else []

        candidates = self._from_search(question, doc_limit)
        if not candidates:
            candidates = list(self.repo.list_recent(doc_limit))

        return candidates[:doc_limit]

    def _from_search(self, question: str, doc_limit: int) -> List[Document]:
        keywords = extract_keywords(question)
        if not keywords:
            return []

        query = " ".join(keywords[:SEARCH_KEYWORDS])
        try:
            hits = self.repo.search_by_keywords(query, doc_limit)
        except Exception as e:
            logger.warning("Keyword search failed, falling back to recent documents: %s", e)
            return []

        docs: List[Document] = []
        for hit in hits or []:
            doc = self.repo.get_by_id(hit.id)
            if doc is not None:
                docs.append(doc)
            if len(docs) >= doc_limit:
                break
        return docs
