from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional

from openai import APIConnectionError, APIStatusError, OpenAI

from docqa.core.errors import ConfigError, GenerationError

logger = logging.getLogger(__name__)

MAX_MODEL_CANDIDATES = 8
FALLBACK_MODELS = ("gpt-4o-mini", "gpt-4.1-mini", "gpt-4o")

_NON_CHAT_MARKERS = ("embedding", "tts", "whisper", "dall-e", "image", "audio", "realtime", "transcribe", "moderation", "search")
_RETRY_HINT_RE = re.compile(r"(?:retry|try again) in\s+(\d+(?:\.\d+)?)\s*(ms|s)\b", re.IGNORECASE)


@dataclass
class LLMResponse:
    text: str
    model: str = ""


@dataclass
class ModelCache:
    """Discovered model ids with an explicit expiry, refreshed on demand."""

    ttl_seconds: float = 600.0
    failure_ttl_seconds: float = 120.0
    clock: Callable[[], float] = time.monotonic
    expires_at: float = 0.0
    entries: List[str] = field(default_factory=list)

    def is_fresh(self) -> bool:
        return self.clock() < self.expires_at

    def get(self, discover: Callable[[], List[str]]) -> List[str]:
        if self.is_fresh():
            return list(self.entries)

        now = self.clock()
        try:
            self.entries = list(discover())
            self.expires_at = now + self.ttl_seconds
        except Exception as e:
            # keep whatever we had and try again sooner
            logger.warning("Model discovery failed: %s", e)
            self.expires_at = now + self.failure_ttl_seconds
        return list(self.entries)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 2                               # per model candidate
    retry_statuses: FrozenSet[int] = frozenset({429, 500, 503})
    next_model_statuses: FrozenSet[int] = frozenset({404})
    max_backoff_seconds: float = 5.0
    default_backoff_seconds: float = 1.0

    def backoff_seconds(self, err: Exception) -> Optional[float]:
        """Delay before retrying `err` on the same model, or None to move on."""
        hint = retry_after_seconds(err)
        delay = self.default_backoff_seconds if hint is None else hint
        if delay > self.max_backoff_seconds:
            return None
        return max(0.0, delay)


def status_of(err: Exception) -> Optional[int]:
    if isinstance(err, APIStatusError):
        return err.status_code
    return None


def retry_after_seconds(err: Exception) -> Optional[float]:
    """Provider backoff hint from Retry-After headers or the error message."""
    response = getattr(err, "response", None)
    headers = getattr(response, "headers", None) or {}
    try:
        ms = headers.get("retry-after-ms")
        if ms is not None:
            return float(ms) / 1000.0
        sec = headers.get("retry-after")
        if sec is not None:
            return float(sec)
    except (TypeError, ValueError):
        pass

    m = _RETRY_HINT_RE.search(str(err))
    if m:
        value = float(m.group(1))
        return value / 1000.0 if m.group(2).lower() == "ms" else value
    return None


def rank_model(model_id: str) -> int:
    m = model_id.lower()
    score = 0
    if m.startswith("gpt-4.1"):
        score += 6
    elif m.startswith("gpt-4o"):
        score += 4
    if "mini" in m:
        score += 5
    if "preview" in m:
        score -= 2
    if "latest" in m:
        score += 1
    return score


def is_chat_model(model_id: str) -> bool:
    m = model_id.lower()
    return m.startswith("gpt-") and not any(x in m for x in _NON_CHAT_MARKERS)


def model_candidates(configured: str, discovered: List[str]) -> List[str]:
    configured = (configured or "").strip()
    chat = [m for m in discovered if is_chat_model(m)]

    if not chat:
        out = [configured] + list(FALLBACK_MODELS) if configured else list(FALLBACK_MODELS)
        return list(dict.fromkeys(m for m in out if m))

    candidates: List[str] = []
    if configured and configured in chat:
        candidates.append(configured)
    for m in sorted(chat, key=rank_model, reverse=True):
        if m not in candidates:
            candidates.append(m)
        if len(candidates) >= MAX_MODEL_CANDIDATES:
            break
    return candidates


class OpenAILLM:
    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.2,
        max_output_tokens: int = 700,
        retry_policy: Optional[RetryPolicy] = None,
        model_cache: Optional[ModelCache] = None,
        client: Optional[OpenAI] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if client is None and not api_key:
            raise ConfigError("OPENAI_API_KEY is not configured")
        self.client = client or OpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.retry_policy = retry_policy or RetryPolicy()
        self.model_cache = model_cache or ModelCache()
        self.sleep = sleep

    def _discover_models(self) -> List[str]:
        return [m.id for m in self.client.models.list()]

    def candidates(self) -> List[str]:
        return model_candidates(self.model, self.model_cache.get(self._discover_models))

    def _complete(self, model: str, system_prompt: str, user_prompt: str) -> LLMResponse:
        resp = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_output_tokens,
            response_format={"type": "json_object"},
        )
        return LLMResponse(text=resp.choices[0].message.content or "", model=model)

    def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        policy = self.retry_policy
        last_err: Optional[Exception] = None

        for model in self.candidates():
            for attempt in range(1, policy.max_attempts + 1):
                try:
                    return self._complete(model, system_prompt, user_prompt)
                except (APIStatusError, APIConnectionError) as e:
                    last_err = e
                    status = status_of(e)
                    logger.warning("Generation failed on %s (attempt %d, status %s): %s", model, attempt, status, e)

                    if status in policy.next_model_statuses:
                        break
                    if status is not None and status not in policy.retry_statuses:
                        raise GenerationError(f"LLM error ({status})") from e
                    if attempt >= policy.max_attempts:
                        break
                    delay = policy.backoff_seconds(e)
                    if delay is None:
                        break
                    self.sleep(delay)

        raise GenerationError("LLM failed on all model candidates") from last_err
