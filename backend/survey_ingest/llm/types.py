# survey_ingest/llm/types.py
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class LLMRequest:
    """A fully rendered prompt plus the generation settings for one call."""

    trace_id: str
    purpose: str                    # "document_cleanup_tidy", "document_cleanup_reconstruct"
    prompt_ref: str                 # "<name>@<version>" in the prompt registry
    model: str

    prompt: str
    system_instruction: str | None

    temperature: float
    max_output_tokens: int
    timeout_seconds: int


@dataclass(frozen=True)
class LLMResponse:
    trace_id: str
    model: str
    output_text: str

    latency_ms: int = 0
    retries: int = 0
    # Provider finish reason ("STOP", "MAX_TOKENS", ...) when reported
    finish_reason: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "MAX_TOKENS"

    def with_retries(self, retries: int) -> "LLMResponse":
        return replace(self, retries=retries)
