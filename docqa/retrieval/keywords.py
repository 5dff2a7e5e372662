from __future__ import annotations

import re
from typing import FrozenSet, List

_WS_RE = re.compile(r"\s+")

MIN_KEYWORD_LEN = 2

# Turkish + English conjunctions, articles and auxiliary verbs
STOP_WORDS: FrozenSet[str] = frozenset({
    "ve", "ile", "bir", "bu", "şu", "o", "da", "de", "ki", "mi", "mu", "mü",
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should",
})


def normalize(text) -> str:
    if not isinstance(text, str):
        return ""
    return _WS_RE.sub(" ", text.lower()).strip()


def extract_keywords(text) -> List[str]:
    """Filtered tokens of `text` in order of appearance (duplicates kept)."""
    normalized = normalize(text)
    if not normalized:
        return []
    return [
        w for w in normalized.split(" ")
        if len(w) >= MIN_KEYWORD_LEN and w not in STOP_WORDS
    ]
