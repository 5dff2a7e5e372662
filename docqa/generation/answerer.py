from __future__ import annotations

import logging
from typing import List, Protocol

from docqa.core.errors import GenerationError
from docqa.core.types import AnswerResult, Chunk
from docqa.generation.citation_guard import build_citations
from docqa.generation.parsing import Parsed, parse_generator_output
from docqa.generation.prompting import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)

INSUFFICIENT_EVIDENCE = "I don't know. No sufficient sources were found in the provided documents."


class LLM(Protocol):
    def generate(self, system_prompt: str, user_prompt: str): ...


class Answerer:
    def __init__(self, llm: LLM, max_citations: int = 3, fallback_on_error: bool = False):
        self.llm = llm
        self.max_citations = max_citations
        self.fallback_on_error = fallback_on_error

    def answer(self, question: str, context_chunks: List[Chunk]) -> AnswerResult:
        if not context_chunks:
            return AnswerResult(answer=INSUFFICIENT_EVIDENCE, confidence="low", citations=[])

        try:
            resp = self.llm.generate(SYSTEM_PROMPT, build_user_prompt(question, context_chunks))
        except Exception as e:
            if not self.fallback_on_error:
                if isinstance(e, GenerationError):
                    raise
                raise GenerationError("LLM error") from e
            # show the retrieval evidence even though generation failed
            logger.warning("Generation failed, answering from retrieval only: %s", e)
            return AnswerResult(
                answer=INSUFFICIENT_EVIDENCE,
                confidence="low",
                citations=build_citations(None, context_chunks, self.max_citations),
                parsed=False,
            )

        out = parse_generator_output(getattr(resp, "text", None))
        if isinstance(out, Parsed):
            return AnswerResult(
                answer=out.answer,
                confidence=out.confidence,
                citations=build_citations(out.citations, context_chunks, self.max_citations),
            )

        logger.info("Generator output was not valid JSON, using raw text")
        return AnswerResult(
            answer=out.raw_text or INSUFFICIENT_EVIDENCE,
            confidence="low",
            citations=build_citations(None, context_chunks, self.max_citations),
            parsed=False,
        )
