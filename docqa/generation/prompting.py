from __future__ import annotations
from typing import List

from docqa.core.types import Chunk


SYSTEM_PROMPT = """You are a document question-answering assistant.

You MUST follow these rules:
1) Use ONLY the provided CONTEXT. Do not use outside knowledge.
2) Cite only chunks listed in the CONTEXT, using their exact chunk_id and doc_id.
3) Quotes must be copied from the cited chunk, at most 200 characters.
4) If the CONTEXT does not contain the answer, say you don't know. Never guess.

Reply with JSON only.
"""

OUTPUT_FORMAT = """{
  "answer": "<your answer>",
  "citations": [
    {
      "docId": "<doc_id>",
      "docName": "<doc_name>",
      "chunkId": "<chunk_id>",
      "startChar": 0,
      "endChar": 100,
      "quote": "<quote, max 200 characters>"
    }
  ],
  "confidence": "low|medium|high"
}"""


def build_user_prompt(question: str, chunks: List[Chunk]) -> str:
    ctx_lines = []
    for i, ch in enumerate(chunks, start=1):
        ctx_lines.append(
            f"({i}) chunk_id={ch.chunk_id} doc_id={ch.doc_id} doc_name={ch.doc_name} "
            f"chars={ch.start_char}-{ch.end_char}\n{ch.text}"
        )
    context_block = "\n\n---\n\n".join(ctx_lines)

    return f"""QUESTION:
{question}

CONTEXT:
{context_block}

INSTRUCTIONS:
- Answer the QUESTION using only the CONTEXT.
- Respond in exactly this JSON format:
{OUTPUT_FORMAT}
"""
