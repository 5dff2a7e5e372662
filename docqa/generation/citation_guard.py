from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional, Sequence

from docqa.core.types import Chunk, Citation

logger = logging.getLogger(__name__)

QUOTE_MAX_LEN = 200
MAX_CITATIONS_CAP = 10

_WS_RE = re.compile(r"\s+")


def sanitize_quote(text, max_len: int = QUOTE_MAX_LEN) -> str:
    if not isinstance(text, str):
        return ""
    cleaned = _WS_RE.sub(" ", text).strip()
    return cleaned[:max_len]


def _is_number(v: Any) -> bool:
    # bool is an int subclass; a JSON true is not an offset
    return isinstance(v, (int, float)) and not isinstance(v, bool) and v == v and abs(v) != float("inf")


def _field(claim: Mapping[str, Any], snake: str, camel: str) -> Any:
    v = claim.get(camel)
    return v if v is not None else claim.get(snake)


def find_matching_chunk(claim: Mapping[str, Any], chunks: Sequence[Chunk]) -> Optional[Chunk]:
    if not chunks:
        return None

    cid = _field(claim, "chunk_id", "chunkId")
    if isinstance(cid, str) and cid:
        for ch in chunks:
            if ch.chunk_id == cid:
                return ch

    did = _field(claim, "doc_id", "docId")
    start = _field(claim, "start_char", "startChar")
    end = _field(claim, "end_char", "endChar")
    if isinstance(did, str) and did and _is_number(start) and _is_number(end):
        for ch in chunks:
            if ch.doc_id == did and ch.start_char <= start and ch.end_char >= end:
                return ch

    return None


def validate_citation(claim: Any, chunks: Sequence[Chunk]) -> Optional[Citation]:
    """
    Ground one generator-claimed citation in the retrieved chunks.

    Returns None when the claim does not point at a retrieved chunk; such
    claims are hallucinations and are dropped.
    """
    if not isinstance(claim, Mapping):
        return None

    chunk = find_matching_chunk(claim, chunks)
    if chunk is None:
        return None

    c_start = _field(claim, "start_char", "startChar")
    c_end = _field(claim, "end_char", "endChar")
    start = int(max(chunk.start_char, c_start)) if _is_number(c_start) else chunk.start_char
    end = int(min(chunk.end_char, c_end)) if _is_number(c_end) else chunk.end_char
    start = min(start, chunk.end_char)
    end = max(start, end)

    quote = sanitize_quote(claim.get("quote") or "")
    if not quote and chunk.text:
        local_start = max(0, start - chunk.start_char)
        local_end = min(len(chunk.text), max(local_start, end - chunk.start_char))
        quote = sanitize_quote(chunk.text[local_start:local_end])
        if not quote:
            quote = sanitize_quote(chunk.text[:QUOTE_MAX_LEN])

    return Citation(
        doc_id=chunk.doc_id,
        doc_name=chunk.doc_name,
        chunk_id=chunk.chunk_id,
        start_char=start,
        end_char=end,
        quote=quote,
    )


def fallback_citations(chunks: Sequence[Chunk], limit: int) -> List[Citation]:
    return [
        Citation(
            doc_id=ch.doc_id,
            doc_name=ch.doc_name,
            chunk_id=ch.chunk_id,
            start_char=ch.start_char,
            end_char=ch.end_char,
            quote=sanitize_quote((ch.text or "")[:QUOTE_MAX_LEN]),
        )
        for ch in list(chunks)[:limit]
    ]


def _limit(max_citations: Any) -> int:
    try:
        n = int(max_citations)
    except (TypeError, ValueError):
        n = 3
    return max(0, min(n, MAX_CITATIONS_CAP))


def build_citations(
    claimed: Optional[Sequence[Any]],
    retrieved: Sequence[Chunk],
    max_citations: int = 3,
) -> List[Citation]:
    """
    Final citation list for an answer.

    Claimed citations are validated against the retrieved chunks,
    deduplicated by chunk id and kept in the generator's order. When no
    claim survives, the top retrieved chunks are cited instead.
    """
    try:
        safe_retrieved = list(retrieved or [])
        limit = _limit(max_citations)
        if limit == 0:
            return []

        if claimed and not isinstance(claimed, (str, bytes, Mapping)):
            claims = list(claimed)
            validated: List[Citation] = []
            seen = set()
            for c in claims:
                v = validate_citation(c, safe_retrieved)
                if v is None or v.chunk_id in seen:
                    continue
                seen.add(v.chunk_id)
                validated.append(v)
                if len(validated) >= limit:
                    break

            if validated:
                return validated
            logger.info("All %d claimed citations discarded, citing top retrieved chunks", len(claims))

        return fallback_citations(safe_retrieved, limit)
    except Exception:
        logger.exception("Citation building failed")
        return []
