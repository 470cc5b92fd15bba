# survey_ingest/llm/telemetry.py

import logging
import time
from dataclasses import asdict, dataclass

logger = logging.getLogger("survey_ingest.llm")


@dataclass
class LLMCallLog:
    """One line per llm_generate() call, after retries are settled."""

    trace_id: str
    model: str
    purpose: str
    prompt_ref: str
    latency_ms: int
    retries: int
    ok: bool
    input_chars: int = 0
    output_chars: int = 0
    finish_reason: str | None = None
    error_type: str | None = None


def now_ms() -> int:
    return int(time.monotonic() * 1000)


def log_llm_call(item: LLMCallLog) -> None:
    level = logging.INFO if item.ok else logging.WARNING
    logger.log(level, "llm.call", extra=asdict(item))
