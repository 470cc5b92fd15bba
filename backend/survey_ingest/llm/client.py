# survey_ingest/llm/client.py
"""
client.py
- Purpose: Single entry point for LLM calls: render prompt, call provider, retry, log.
- Design: Synchronous. Async callers run it in a worker thread and bound it
  with their own timeout (see text_service.py).
"""

import time
import uuid
from typing import Protocol

from survey_ingest.core.config import Settings, settings as default_settings
from survey_ingest.llm.errors import LLMError, LLMNonRetryableError, LLMRetryableError
from survey_ingest.llm.prompts.registry import get_prompt
from survey_ingest.llm.providers.gemini import GeminiProvider
from survey_ingest.llm.telemetry import LLMCallLog, log_llm_call, now_ms
from survey_ingest.llm.types import LLMRequest, LLMResponse

MAX_BACKOFF_SECONDS = 2.0


class Provider(Protocol):
    def generate(self, req: LLMRequest) -> LLMResponse:
        ...


def backoff_seconds(attempt: int) -> float:
    return min(MAX_BACKOFF_SECONDS, 0.25 * (2 ** attempt))


def build_request(
    *,
    purpose: str,
    prompt_name: str,
    prompt_version: str,
    variables: dict,
    cfg: Settings,
) -> LLMRequest:
    tmpl = get_prompt(prompt_name, prompt_version)
    return LLMRequest(
        trace_id=str(uuid.uuid4()),
        purpose=purpose,
        prompt_ref=tmpl.ref,
        model=cfg.GEMINI_MODEL,
        prompt=tmpl.render(variables),
        system_instruction=tmpl.system_instruction,
        temperature=cfg.LLM_TEMPERATURE,
        max_output_tokens=cfg.LLM_MAX_OUTPUT_TOKENS,
        timeout_seconds=cfg.LLM_TIMEOUT_SECONDS,
    )


def llm_generate(
    *,
    purpose: str,
    prompt_name: str,
    prompt_version: str,
    variables: dict,
    provider: Provider | None = None,
    cfg: Settings | None = None,
) -> LLMResponse:
    cfg = cfg or default_settings

    if cfg.LLM_PROVIDER != "gemini":
        raise LLMNonRetryableError(f"Unsupported provider: {cfg.LLM_PROVIDER}")

    req = build_request(
        purpose=purpose,
        prompt_name=prompt_name,
        prompt_version=prompt_version,
        variables=variables,
        cfg=cfg,
    )
    client = provider or GeminiProvider(api_key=cfg.GEMINI_API_KEY)

    start_ms = now_ms()
    retries = 0
    last_err: LLMError | None = None

    def _log(ok: bool, *, resp: LLMResponse | None = None, error_type: str | None = None) -> None:
        log_llm_call(
            LLMCallLog(
                trace_id=req.trace_id,
                model=req.model,
                purpose=purpose,
                prompt_ref=req.prompt_ref,
                latency_ms=now_ms() - start_ms,
                retries=retries,
                ok=ok,
                input_chars=len(req.prompt),
                output_chars=len(resp.output_text) if resp else 0,
                finish_reason=resp.finish_reason if resp else None,
                error_type=error_type,
            )
        )

    for attempt in range(cfg.LLM_MAX_RETRIES + 1):
        try:
            resp = client.generate(req)
        except LLMRetryableError as e:
            last_err = e
            if attempt >= cfg.LLM_MAX_RETRIES:
                break
            retries += 1
            time.sleep(backoff_seconds(attempt))
            continue
        except LLMNonRetryableError as e:
            _log(False, error_type=type(e).__name__)
            raise

        _log(True, resp=resp)
        return resp.with_retries(retries)

    _log(False, error_type=type(last_err).__name__ if last_err else "LLMError")
    raise last_err if last_err else LLMRetryableError("LLM failed after retries")
