from __future__ import annotations

from typing import List, Optional

from docqa.core.types import TextWindow


def chunk_text(text: Optional[str], size: int = 1000, overlap: int = 100) -> List[TextWindow]:
    """
    Split text into fixed-size character windows.

    Consecutive windows share `overlap` characters. The step is
    `size - overlap` but never less than 1, so a misconfigured
    `size <= overlap` still terminates.
    """
    if not text:
        return []

    size = max(1, int(size))
    step = max(1, size - max(0, int(overlap)))

    out: List[TextWindow] = []
    start = 0
    while start < len(text):
        end = min(start + size, len(text))
        out.append(TextWindow(text=text[start:end], start_char=start, end_char=end))
        if end == len(text):
            break
        start += step

    return out


class CharChunker:
    def __init__(self, chunk_size: int = 1000, overlap: int = 100):
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: Optional[str]) -> List[TextWindow]:
        return chunk_text(text, self.chunk_size, self.overlap)
