from __future__ import annotations

import re

_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text) -> str:
    # extracted document text keeps its case; only whitespace is normalized
    if not isinstance(text, str):
        return ""
    return _WS_RE.sub(" ", text).strip()
