# survey_ingest/llm/errors.py
class LLMError(Exception):
    """Base LLM error (wrapped)."""

class LLMRetryableError(LLMError):
    """Transient error: timeouts, 429s, 5xx, network, empty replies."""

class LLMNonRetryableError(LLMError):
    """Bad request, auth, prompt too large, missing key."""

class LLMBlockedError(LLMNonRetryableError):
    """The provider refused the prompt (safety filters). Retrying the same document will not help."""
