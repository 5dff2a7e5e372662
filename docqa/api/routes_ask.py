from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from dotenv import load_dotenv

from docqa.api.schemas import (
    AskRequest,
    AskResponse,
    Citation,
    RetrievalParams,
    RetrievedDebugItem,
    SearchHitOut,
    SearchResponse,
)
from docqa.core.config import settings
from docqa.core.errors import AppError
from docqa.core.types import Chunk
from docqa.generation.answerer import INSUFFICIENT_EVIDENCE, Answerer
from docqa.generation.openai_client import ModelCache, OpenAILLM, RetryPolicy
from docqa.indexing.document_store import SQLDocumentStore
from docqa.ingestion.chunker import CharChunker
from docqa.ingestion.extractor import FileTextExtractor
from docqa.retrieval.retriever import LexicalRetriever, clamp

load_dotenv()
router = APIRouter()


@lru_cache(maxsize=1)
def get_store() -> SQLDocumentStore:
    return SQLDocumentStore(settings.database_url)


def get_retriever(store=Depends(get_store)) -> LexicalRetriever:
    return LexicalRetriever(
        repo=store,
        extractor=FileTextExtractor(),
        chunker=CharChunker(settings.chunk_size, settings.chunk_overlap),
        max_top_k=settings.max_top_k,
        max_doc_limit=settings.max_doc_limit,
        max_workers=settings.retrieval_workers,
    )


@lru_cache(maxsize=1)
def _shared_llm() -> OpenAILLM:
    return OpenAILLM(
        api_key=settings.openai_api_key or "",
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_output_tokens=settings.llm_max_output_tokens,
        retry_policy=RetryPolicy(
            max_attempts=settings.llm_max_attempts,
            max_backoff_seconds=settings.llm_max_backoff_seconds,
        ),
        model_cache=ModelCache(ttl_seconds=settings.model_cache_ttl_seconds),
    )


def get_answerer_factory() -> Callable[[], Answerer]:
    # the LLM client is only built once there is evidence to answer from
    return lambda: Answerer(_shared_llm(), max_citations=settings.max_citations)


def _debug_items(chunks: List[Chunk]) -> List[Dict[str, Any]]:
    return [
        RetrievedDebugItem(
            chunk_id=c.chunk_id,
            doc_id=c.doc_id,
            score=c.score,
            start_char=c.start_char,
            end_char=c.end_char,
            preview=(c.text or "")[:160],
        ).model_dump()
        for c in chunks
    ]


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/ask", response_model=AskResponse)
def ask(
    req: AskRequest,
    retriever: LexicalRetriever = Depends(get_retriever),
    answerer_factory: Callable[[], Answerer] = Depends(get_answerer_factory),
) -> AskResponse:
    question = (req.question or "").strip()
    if not question:
        raise AppError("Missing question", status_code=400, code="BAD_REQUEST")

    top_k = clamp(req.top_k if req.top_k is not None else settings.default_top_k, 1, settings.max_top_k, settings.default_top_k)
    doc_limit = clamp(
        req.doc_limit if req.doc_limit is not None else settings.default_doc_limit,
        1,
        settings.max_doc_limit,
        settings.default_doc_limit,
    )

    chunks = retriever.retrieve_chunks(question, doc_limit=doc_limit, top_k=top_k, explicit_doc_id=req.doc_id)

    debug: Optional[Dict[str, Any]] = None
    if req.debug:
        debug = {"doc_id_filter": req.doc_id, "retrieved": _debug_items(chunks)}

    retrieval = RetrievalParams(doc_limit=doc_limit, top_k=top_k)
    if not chunks:
        return AskResponse(
            question=question,
            answer=INSUFFICIENT_EVIDENCE,
            confidence="low",
            based_on_docs=[],
            retrieval=retrieval,
            debug=debug,
        )

    result = answerer_factory().answer(question, chunks)
    if debug is not None:
        debug["generator_output_parsed"] = result.parsed

    return AskResponse(
        question=question,
        answer=result.answer,
        confidence=result.confidence,
        based_on_docs=[Citation(**c.to_dict()) for c in result.citations],
        retrieval=retrieval,
        debug=debug,
    )


@router.get("/search", response_model=SearchResponse)
def search(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    store=Depends(get_store),
) -> SearchResponse:
    hits = store.search_by_keywords(q, limit)
    return SearchResponse(
        query=q,
        results=[SearchHitOut(id=h.id, name=h.name, score=h.score) for h in hits],
    )
