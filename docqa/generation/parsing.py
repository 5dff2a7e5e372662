from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

CONFIDENCE_LEVELS = ("low", "medium", "high")

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Parsed:
    answer: str
    citations: List[Dict[str, Any]] = field(default_factory=list)
    confidence: str = "medium"


@dataclass(frozen=True)
class Unparsed:
    raw_text: str


GeneratorOutput = Union[Parsed, Unparsed]


def parse_generator_output(raw: Any) -> GeneratorOutput:
    """Turn raw model text into Parsed, or Unparsed when it is not usable JSON."""
    text = raw if isinstance(raw, str) else ""
    cleaned = _FENCE_RE.sub("", text).strip()

    try:
        data = json.loads(cleaned)
    except (TypeError, ValueError):
        return Unparsed(raw_text=text.strip())

    if not isinstance(data, dict):
        return Unparsed(raw_text=text.strip())

    answer = data.get("answer")
    if not isinstance(answer, str) or not answer.strip():
        return Unparsed(raw_text=text.strip())

    citations = data.get("citations")
    if not isinstance(citations, list):
        citations = []

    confidence = data.get("confidence")
    if not isinstance(confidence, str) or confidence.lower() not in CONFIDENCE_LEVELS:
        confidence = "medium"

    return Parsed(
        answer=answer.strip(),
        citations=[c for c in citations if isinstance(c, dict)],
        confidence=confidence.lower(),
    )
