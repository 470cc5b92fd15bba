import httpx
import pytest
from google.genai import errors as genai_errors

from survey_ingest.core.config import Settings
from survey_ingest.llm import client as llm_client
from survey_ingest.llm.client import llm_generate
from survey_ingest.llm.errors import LLMNonRetryableError, LLMRetryableError
from survey_ingest.llm.prompts.registry import get_prompt
from survey_ingest.llm.providers.gemini import GeminiProvider, classify_error
from survey_ingest.llm.types import LLMResponse


class ScriptedProvider:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.prompts = []
        self.requests = []

    def generate(self, req):
        self.requests.append(req)
        self.prompts.append(req.prompt)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return LLMResponse(
            trace_id=req.trace_id,
            model=req.model,
            output_text=outcome,
            latency_ms=1,
        )


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(llm_client.time, "sleep", lambda s: None)


def cfg(**overrides):
    return Settings(GEMINI_API_KEY="k", **overrides)


def call(provider, **overrides):
    return llm_generate(
        purpose="test",
        prompt_name="cleanup_tidy",
        prompt_version="v1",
        variables={"source_kind": "PDF", "content": "raw text here"},
        provider=provider,
        cfg=cfg(**overrides),
    )


def test_prompt_variables_are_rendered():
    provider = ScriptedProvider("done")
    resp = call(provider)

    assert resp.output_text == "done"
    assert "extracted from a PDF document" in provider.prompts[0]
    assert provider.prompts[0].endswith("raw text here")
    assert "{{" not in provider.prompts[0]


def test_retryable_errors_are_retried():
    provider = ScriptedProvider(LLMRetryableError("429"), "second time lucky")
    resp = call(provider, LLM_MAX_RETRIES=2)

    assert resp.output_text == "second time lucky"
    assert resp.retries == 1


def test_retries_exhausted_raise_last_error():
    provider = ScriptedProvider(LLMRetryableError("a"), LLMRetryableError("b"))
    with pytest.raises(LLMRetryableError, match="b"):
        call(provider, LLM_MAX_RETRIES=1)


def test_non_retryable_error_is_raised_immediately():
    provider = ScriptedProvider(LLMNonRetryableError("bad key"), "unused")
    with pytest.raises(LLMNonRetryableError):
        call(provider, LLM_MAX_RETRIES=3)
    assert len(provider.prompts) == 1


def test_unknown_prompt_is_rejected():
    with pytest.raises(KeyError):
        get_prompt("cleanup_tidy", "v99")


def test_request_carries_system_instruction_and_prompt_ref():
    provider = ScriptedProvider("done")
    call(provider, GEMINI_MODEL="gemini-test", LLM_TEMPERATURE=0.0)

    req = provider.requests[0]
    assert req.prompt_ref == "cleanup_tidy@v1"
    assert req.model == "gemini-test"
    assert req.temperature == 0.0
    assert "survey" in req.system_instruction


def test_unsupported_provider_is_rejected_before_any_call():
    provider = ScriptedProvider("unused")
    with pytest.raises(LLMNonRetryableError, match="Unsupported provider"):
        call(provider, LLM_PROVIDER="openai")
    assert provider.prompts == []


def test_backoff_is_capped():
    assert llm_client.backoff_seconds(0) == 0.25
    assert llm_client.backoff_seconds(10) == llm_client.MAX_BACKOFF_SECONDS


@pytest.mark.parametrize(
    "error,retryable",
    [
        (genai_errors.ClientError(429, {"error": {"message": "quota", "status": "RESOURCE_EXHAUSTED"}}), True),
        (genai_errors.ServerError(503, {"error": {"message": "overloaded", "status": "UNAVAILABLE"}}), True),
        (genai_errors.ClientError(400, {"error": {"message": "bad", "status": "INVALID_ARGUMENT"}}), False),
        (httpx.ReadTimeout("slow"), True),
        (httpx.ConnectError("refused"), True),
        (ValueError("prompt too large"), False),
    ],
)
def test_gemini_errors_are_classified(error, retryable):
    wrapped = classify_error(error)
    expected = LLMRetryableError if retryable else LLMNonRetryableError
    assert isinstance(wrapped, expected)


def test_missing_key_fails_without_retry():
    with pytest.raises(LLMNonRetryableError, match="GEMINI_API_KEY"):
        llm_generate(
            purpose="test",
            prompt_name="cleanup_tidy",
            prompt_version="v1",
            variables={"source_kind": "TXT", "content": "x"},
            provider=GeminiProvider(api_key=None),
            cfg=cfg(),
        )
