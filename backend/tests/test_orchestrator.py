import pytest

from survey_ingest.core import AppError, ErrorCode
from survey_ingest.pdf.detect import SAFE_DEFAULT_PROFILE
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.orchestrator import (
    ORDER_CORRUPTED,
    ORDER_MIXED,
    ORDER_SCANNED,
    ORDER_TEXT_BASED,
    PdfExtractionOrchestrator,
    reduce_attempt,
    strategy_order,
)
from survey_ingest.pdf.types import Complexity, ExtractionAttempt, PdfProfile, StrategyName as S

GOOD_TEXT = "Customer Satisfaction Survey. Please rate your experience with our service."
HALF_READABLE = "a" * 13 + "#" * 13


class Recorder:
    """Strategy table whose behaviour is scripted per strategy name."""

    def __init__(self, outcomes=None, names=None):
        self.outcomes = outcomes or {}
        self.calls = []
        self.names = names or [s for s in S if s != S.AI_INTERPRETATION]

    def table(self):
        return {name: self._strategy(name) for name in self.names}

    def _strategy(self, name):
        async def run(upload):
            self.calls.append(name)
            outcome = self.outcomes.get(name)
            if outcome is None:
                raise ExtractionError(f"{name.value} failed")
            return outcome

        return run


def orchestrator(recorder, profile, ai=None):
    return PdfExtractionOrchestrator(ai, strategies=recorder.table(), detector=lambda data: profile)


# ---- ordering ----

def test_each_profile_maps_to_a_fixed_order(profiles):
    ai_profile = PdfProfile(False, False, False, Complexity.COMPLEX, S.AI_INTERPRETATION)
    mixed = PdfProfile(False, False, False, Complexity.MODERATE, S.STRUCTURE_AWARE)

    assert strategy_order(ai_profile) == ORDER_CORRUPTED
    assert strategy_order(profiles["text_based"]) == ORDER_TEXT_BASED
    assert strategy_order(profiles["scanned"]) == ORDER_SCANNED
    assert strategy_order(mixed) == ORDER_MIXED
    for order in (ORDER_CORRUPTED, ORDER_TEXT_BASED, ORDER_SCANNED, ORDER_MIXED):
        assert sorted(order) == sorted(S)


# ---- reducer ----

def test_reducer_accepts_above_strategy_threshold():
    attempt = ExtractionAttempt(S.OCR_FALLBACK, "x" * 30, 0.45)
    assert reduce_attempt(None, attempt).accepted

    stricter = ExtractionAttempt(S.STRUCTURE_AWARE, "x" * 30, 0.45)
    assert not reduce_attempt(None, stricter).accepted


def test_reducer_requires_more_than_twenty_chars():
    outcome = reduce_attempt(None, ExtractionAttempt(S.STRUCTURE_AWARE, "x" * 20, 1.0))
    assert not outcome.accepted
    assert outcome.best.text == "x" * 20


def test_reducer_keeps_best_ratio():
    best = ExtractionAttempt(S.BASIC_PATTERN, "b" * 40, 0.4)
    worse = ExtractionAttempt(S.OCR_FALLBACK, "w" * 40, 0.3)
    better = ExtractionAttempt(S.CORRUPTED_RECOVERY, "c" * 40, 0.5)

    assert reduce_attempt(best, worse).best is best
    assert reduce_attempt(best, better).best is better


def test_reducer_ignores_tiny_attempts():
    assert reduce_attempt(None, ExtractionAttempt(S.OCR_FALLBACK, "tiny", 1.0)).best is None


# ---- orchestration ----

@pytest.mark.anyio
async def test_text_based_pdf_short_circuits_on_structure_aware(profiles, pdf_upload):
    rec = Recorder({S.STRUCTURE_AWARE: GOOD_TEXT, S.OCR_FALLBACK: GOOD_TEXT})

    result = await orchestrator(rec, profiles["text_based"]).extract(pdf_upload())

    assert rec.calls == [S.STRUCTURE_AWARE]
    assert result.strategy == S.STRUCTURE_AWARE
    assert result.text == GOOD_TEXT
    assert result.readable_ratio > 0.7


@pytest.mark.anyio
async def test_scanned_pdf_tries_ocr_before_structure_aware(profiles, pdf_upload):
    rec = Recorder({S.STRUCTURE_AWARE: GOOD_TEXT})

    result = await orchestrator(rec, profiles["scanned"]).extract(pdf_upload())

    assert rec.calls.index(S.OCR_FALLBACK) < rec.calls.index(S.STRUCTURE_AWARE)
    assert result.strategy == S.STRUCTURE_AWARE


@pytest.mark.anyio
async def test_best_attempt_returned_when_nothing_clears_threshold(profiles, pdf_upload):
    rec = Recorder({S.CORRUPTED_RECOVERY: HALF_READABLE})

    result = await orchestrator(rec, profiles["text_based"]).extract(pdf_upload())

    # every strategy ran; corrupted-recovery is last in this order
    assert rec.calls == list(s for s in ORDER_TEXT_BASED if s != S.AI_INTERPRETATION)
    assert result.text == HALF_READABLE
    assert result.strategy == S.CORRUPTED_RECOVERY
    assert result.readable_ratio == pytest.approx(0.5)
    assert not result.ai_recovered


@pytest.mark.anyio
async def test_better_earlier_attempt_beats_later_one(profiles, pdf_upload):
    earlier = "Good words here " + "#" * 12  # 0.57 readable: kept, not accepted
    rec = Recorder({S.STRUCTURE_AWARE: earlier, S.CORRUPTED_RECOVERY: HALF_READABLE})

    result = await orchestrator(rec, profiles["text_based"]).extract(pdf_upload())

    assert result.text == earlier
    assert result.strategy == S.STRUCTURE_AWARE


@pytest.mark.anyio
async def test_total_failure_without_ai_raises_one_remediation_error(profiles, pdf_upload):
    rec = Recorder()

    with pytest.raises(AppError) as exc:
        await orchestrator(rec, profiles["text_based"]).extract(pdf_upload(name="Q3 survey.pdf"))

    err = exc.value
    assert err.code == ErrorCode.EXTRACTION_FAILED
    assert err.status_code == 422
    message = str(err)
    assert '"Q3 survey.pdf"' in message
    assert "DOCX" in message
    assert "SmallPDF" in message
    assert "TXT file" in message
    assert "tried 5 extraction methods" in message
    assert "Text-based (simple complexity)" in message
    assert len(rec.calls) == 5


@pytest.mark.anyio
async def test_unexpected_strategy_crash_is_contained(profiles, pdf_upload):
    rec = Recorder({S.SIMPLE_RENDER: GOOD_TEXT})
    table = rec.table()

    async def crash(upload):
        raise RuntimeError("renderer blew up")

    table[S.STRUCTURE_AWARE] = crash
    orch = PdfExtractionOrchestrator(None, strategies=table, detector=lambda data: profiles["text_based"])

    result = await orch.extract(pdf_upload())
    assert result.strategy == S.SIMPLE_RENDER


@pytest.mark.anyio
async def test_detector_crash_uses_safe_default(pdf_upload):
    rec = Recorder({S.OCR_FALLBACK: GOOD_TEXT})

    def broken(data):
        raise ValueError("bad xref")

    orch = PdfExtractionOrchestrator(None, strategies=rec.table(), detector=broken)
    result = await orch.extract(pdf_upload())

    assert result.profile == SAFE_DEFAULT_PROFILE
    assert rec.calls == [S.OCR_FALLBACK]


# ---- AI recovery ----

@pytest.mark.anyio
async def test_ai_cleans_low_quality_best_attempt(profiles, pdf_upload, fake_ai):
    cleaned = "Recovered survey text that reads well."
    ai = fake_ai(cleaned)
    rec = Recorder({S.CORRUPTED_RECOVERY: HALF_READABLE})

    result = await orchestrator(rec, profiles["text_based"], ai=ai).extract(pdf_upload())

    assert result.text == cleaned
    assert result.ai_recovered
    assert ai.calls[0]["text"] == HALF_READABLE
    assert ai.calls[0]["source_kind"] == "corrupted PDF"


@pytest.mark.anyio
async def test_ai_result_shorter_than_half_is_discarded(profiles, pdf_upload, fake_ai):
    ai = fake_ai("short")
    rec = Recorder({S.CORRUPTED_RECOVERY: HALF_READABLE})

    result = await orchestrator(rec, profiles["text_based"], ai=ai).extract(pdf_upload())

    assert result.text == HALF_READABLE
    assert not result.ai_recovered


@pytest.mark.anyio
async def test_missing_ai_strategy_is_skipped_even_if_ordered(pdf_upload):
    ai_profile = PdfProfile(False, False, False, Complexity.COMPLEX, S.AI_INTERPRETATION)
    rec = Recorder({S.OCR_FALLBACK: GOOD_TEXT})

    result = await orchestrator(rec, ai_profile).extract(pdf_upload())

    assert S.AI_INTERPRETATION not in rec.calls
    assert result.strategies_tried == [S.OCR_FALLBACK]
