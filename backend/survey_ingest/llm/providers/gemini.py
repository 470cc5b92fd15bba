# survey_ingest/llm/providers/gemini.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from survey_ingest.llm.errors import (
    LLMBlockedError,
    LLMError,
    LLMNonRetryableError,
    LLMRetryableError,
)
from survey_ingest.llm.types import LLMRequest, LLMResponse

RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})
_RETRYABLE_HINTS = ("429", "rate", "quota", "unavailable", "temporarily", "overloaded")


def classify_error(e: Exception) -> LLMError:
    """Map SDK/transport failures onto the retryable / non-retryable split used by the client."""
    if isinstance(e, LLMError):
        return e
    if isinstance(e, (httpx.TimeoutException, TimeoutError)):
        return LLMRetryableError(f"Gemini call timed out: {e}")
    if isinstance(e, genai_errors.APIError):
        if isinstance(e, genai_errors.ServerError) or e.code in RETRYABLE_STATUS:
            return LLMRetryableError(f"Gemini {e.code}: {e}")
        return LLMNonRetryableError(f"Gemini {e.code}: {e}")
    if isinstance(e, httpx.TransportError):
        return LLMRetryableError(f"Gemini transport error: {e}")

    msg = str(e).lower()
    if any(x in msg for x in _RETRYABLE_HINTS):
        return LLMRetryableError(f"Gemini retryable failure: {e}")
    return LLMNonRetryableError(f"Gemini non-retryable failure: {e}")


def _finish_reason(resp: Any) -> str | None:
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return None
    reason = getattr(candidates[0], "finish_reason", None)
    if reason is None:
        return None
    return str(getattr(reason, "value", reason))


def _block_reason(resp: Any) -> str | None:
    feedback = getattr(resp, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    if reason is None:
        return None
    return str(getattr(reason, "value", reason))


@dataclass
class GeminiProvider:
    """
    Gemini provider using Google Gen AI SDK (google-genai).
    Single-attempt. Retries/backoff handled by survey_ingest/llm/client.py.
    """
    api_key: Optional[str] = None
    _client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise LLMNonRetryableError("GEMINI_API_KEY is missing")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def generate(self, req: LLMRequest) -> LLMResponse:
        client = self._get_client()
        t0 = time.perf_counter()

        config = types.GenerateContentConfig(
            system_instruction=req.system_instruction,
            temperature=req.temperature,
            max_output_tokens=req.max_output_tokens,
            response_mime_type="text/plain",
            # milliseconds
            http_options=types.HttpOptions(timeout=int(req.timeout_seconds * 1000)),
        )

        try:
            resp = client.models.generate_content(model=req.model, contents=req.prompt, config=config)
        except Exception as e:
            raise classify_error(e) from e

        text = (getattr(resp, "text", None) or "").strip()
        finish = _finish_reason(resp)
        if not text:
            blocked = _block_reason(resp)
            if blocked:
                raise LLMBlockedError(f"Gemini blocked the prompt: {blocked}")
            raise LLMRetryableError(f"Gemini returned an empty response (finish_reason={finish})")

        usage = getattr(resp, "usage_metadata", None)
        return LLMResponse(
            trace_id=req.trace_id,
            model=req.model,
            output_text=text,
            latency_ms=int((time.perf_counter() - t0) * 1000),
            finish_reason=finish,
            input_tokens=getattr(usage, "prompt_token_count", None) if usage is not None else None,
            output_tokens=getattr(usage, "candidates_token_count", None) if usage is not None else None,
        )
