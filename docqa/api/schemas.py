from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any


class AskRequest(BaseModel):
    question: str
    top_k: Optional[int] = None
    doc_limit: Optional[int] = None
    doc_id: Optional[str] = None
    debug: bool = False


class Citation(BaseModel):
    doc_id: str
    doc_name: str
    chunk_id: str
    start_char: int
    end_char: int
    quote: str


class RetrievalParams(BaseModel):
    doc_limit: int
    top_k: int


class RetrievedDebugItem(BaseModel):
    chunk_id: str
    doc_id: str
    score: float
    start_char: int
    end_char: int
    preview: str


class AskResponse(BaseModel):
    question: str
    answer: str
    confidence: str
    based_on_docs: List[Citation]
    retrieval: RetrievalParams
    debug: Optional[Dict[str, Any]] = None


class SearchHitOut(BaseModel):
    id: str
    name: str
    score: Optional[float] = None


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHitOut] = Field(default_factory=list)
