from __future__ import annotations

from typing import List, Sequence

from docqa.core.types import Chunk


def score_chunk(chunk_text: str, keywords: Sequence[str]) -> float:
    """
    Coverage ratio: share of distinct keywords found in the chunk.

    Both sides count distinct keywords, so ["alpha", "alpha", "beta"] against
    "alpha" scores 1/2. Repetition inside the chunk earns nothing extra. No
    keywords means no ranking signal, so the score is 0.
    """
    distinct = list(dict.fromkeys(k.lower() for k in keywords if k))
    if not distinct:
        return 0.0

    haystack = (chunk_text or "").lower()
    hits = sum(1 for k in distinct if k in haystack)
    return hits / len(distinct)


def rank_chunks(chunks: Sequence[Chunk], top_k: int) -> List[Chunk]:
    # sorted() is stable: equal scores keep discovery order
    ranked = sorted(chunks, key=lambda c: c.score, reverse=True)
    return ranked[: max(0, top_k)]
