"""survey_ingest/pdf/orchestrator.py

Hybrid PDF extraction:
1) detect the PDF type from its first page
2) pick a fixed strategy order for that type
3) run strategies one by one; the first result that clears its threshold wins
4) otherwise fall back to the best sub-threshold attempt, optionally AI-cleaned
5) nothing usable -> one user-facing error with remediation hints

Strategies run sequentially on purpose: cheaper methods go first so AI quota
is only spent when they fail.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Mapping

from survey_ingest.core import ErrorCode, ErrorReason
from survey_ingest.core.errors import unprocessable
from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.llm.text_service import AiTextService
from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.detect import SAFE_DEFAULT_PROFILE, detect_pdf_type
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.quality import readable_ratio
from survey_ingest.pdf.strategies import StrategyFn, build_strategies
from survey_ingest.pdf.types import ExtractionAttempt, ExtractionResult, PdfProfile, StrategyName

logger = logging.getLogger("survey_ingest.pdf.orchestrator")

S = StrategyName

ORDER_CORRUPTED = (S.AI_INTERPRETATION, S.OCR_FALLBACK, S.CORRUPTED_RECOVERY, S.STRUCTURE_AWARE, S.SIMPLE_RENDER, S.BASIC_PATTERN)
ORDER_TEXT_BASED = (S.STRUCTURE_AWARE, S.SIMPLE_RENDER, S.BASIC_PATTERN, S.OCR_FALLBACK, S.AI_INTERPRETATION, S.CORRUPTED_RECOVERY)
ORDER_SCANNED = (S.OCR_FALLBACK, S.AI_INTERPRETATION, S.BASIC_PATTERN, S.STRUCTURE_AWARE, S.SIMPLE_RENDER, S.CORRUPTED_RECOVERY)
ORDER_MIXED = (S.STRUCTURE_AWARE, S.OCR_FALLBACK, S.AI_INTERPRETATION, S.SIMPLE_RENDER, S.BASIC_PATTERN, S.CORRUPTED_RECOVERY)

RECOVERY_SOURCE_KIND = "corrupted PDF"

Detector = Callable[[bytes], PdfProfile]


def strategy_order(profile: PdfProfile) -> tuple[StrategyName, ...]:
    if profile.recommended_strategy == S.AI_INTERPRETATION:
        return ORDER_CORRUPTED
    if profile.is_text_based and not profile.is_scanned:
        return ORDER_TEXT_BASED
    if profile.is_scanned or profile.has_images:
        return ORDER_SCANNED
    return ORDER_MIXED


@dataclass(frozen=True)
class AttemptOutcome:
    accepted: bool
    best: ExtractionAttempt | None


def reduce_attempt(best: ExtractionAttempt | None, attempt: ExtractionAttempt) -> AttemptOutcome:
    """Fold one attempt into the running best.

    accepted=True means the attempt cleared its own threshold and extraction
    should stop. Otherwise `best` is the attempt to keep for recovery.
    """
    threshold = t.orchestration_threshold(attempt.strategy)
    if len(attempt.text) > t.ORCH_MIN_SUCCESS_LENGTH and attempt.readable_ratio > threshold:
        return AttemptOutcome(accepted=True, best=attempt)

    if len(attempt.text) > t.ORCH_MIN_BEST_LENGTH and (best is None or attempt.readable_ratio > best.readable_ratio):
        return AttemptOutcome(accepted=False, best=attempt)
    return AttemptOutcome(accepted=False, best=best)


def extraction_failure_message(file_name: str, profile: PdfProfile, methods_tried: int) -> str:
    return (
        f'Unable to extract text from "{file_name}". This can happen with:\n\n'
        "- Scanned PDFs or image-based documents\n"
        "- Password-protected or encrypted files\n"
        "- Complex layouts or special formatting\n\n"
        "Quick solutions:\n"
        "- Upload the document as DOCX instead (recommended)\n"
        "- Convert it with an online PDF converter such as SmallPDF or ILovePDF\n"
        "- Copy the text out of the PDF and save it as a TXT file\n"
        "- Try a different PDF if you have one\n\n"
        f"Technical details: tried {methods_tried} extraction methods\n"
        f"PDF type: {profile.describe()}"
    )


class PdfExtractionOrchestrator:
    """One instance per pipeline; holds configuration only, no per-file state."""

    def __init__(
        self,
        ai_backend: AiTextService | None = None,
        *,
        strategies: Mapping[StrategyName, StrategyFn] | None = None,
        detector: Detector | None = None,
        denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS,
    ):
        self.ai_backend = ai_backend
        self.strategies = dict(strategies) if strategies is not None else build_strategies(ai_backend, denylist=denylist)
        self.detector = detector or (
            lambda data: detect_pdf_type(data, ai_available=ai_backend is not None, denylist=denylist)
        )

    async def _detect(self, upload: UploadedFile) -> PdfProfile:
        try:
            return await asyncio.to_thread(self.detector, upload.data)
        except Exception as e:
            logger.warning("pdf.detect.fallback_profile", extra={"error": str(e)})
            return SAFE_DEFAULT_PROFILE

    def _plan(self, profile: PdfProfile) -> list[StrategyName]:
        order = strategy_order(profile)
        skipped = [name for name in order if name not in self.strategies]
        if skipped:
            logger.info("pdf.strategies_skipped", extra={"skipped": [s.value for s in skipped]})
        return [name for name in order if name in self.strategies]

    async def extract(self, upload: UploadedFile) -> ExtractionResult:
        profile = await self._detect(upload)
        plan = self._plan(profile)
        logger.info(
            "pdf.extract.plan",
            extra={"file_name": upload.name, "order": [s.value for s in plan], "complexity": profile.complexity.value},
        )

        best: ExtractionAttempt | None = None
        tried: list[StrategyName] = []
        failures: dict[str, str] = {}

        for name in plan:
            tried.append(name)
            try:
                text = await self.strategies[name](upload)
            except ExtractionError as e:
                failures[name.value] = str(e)
                logger.info("pdf.strategy_failed", extra={"strategy": name.value, "error": str(e)})
                continue
            except Exception as e:
                failures[name.value] = str(e)
                logger.warning("pdf.strategy_crashed", extra={"strategy": name.value, "error": str(e)}, exc_info=True)
                continue

            attempt = ExtractionAttempt(strategy=name, text=text or "", readable_ratio=readable_ratio(text or ""))
            outcome = reduce_attempt(best, attempt)
            if outcome.accepted:
                logger.info(
                    "pdf.strategy_succeeded",
                    extra={"strategy": name.value, "chars": len(attempt.text), "readable_ratio": round(attempt.readable_ratio, 3)},
                )
                return ExtractionResult(
                    text=attempt.text,
                    strategy=name,
                    readable_ratio=attempt.readable_ratio,
                    profile=profile,
                    strategies_tried=tried,
                )

            logger.info(
                "pdf.strategy_below_threshold",
                extra={
                    "strategy": name.value,
                    "chars": len(attempt.text),
                    "readable_ratio": round(attempt.readable_ratio, 3),
                    "threshold": t.orchestration_threshold(name),
                    "kept_as_best": outcome.best is attempt,
                },
            )
            best = outcome.best

        if best is not None and len(best.text) > t.ORCH_MIN_BEST_LENGTH:
            return await self._recover(best, profile, tried)

        logger.error(
            "pdf.extract.failed",
            extra={"file_name": upload.name, "methods_tried": len(tried), "failures": failures},
        )
        raise unprocessable(
            ErrorCode.EXTRACTION_FAILED,
            ErrorReason.PDF_UNREADABLE,
            extraction_failure_message(upload.name, profile, len(tried)),
            details={"methods_tried": len(tried), "pdf_type": profile.describe()},
        )

    async def _recover(
        self,
        best: ExtractionAttempt,
        profile: PdfProfile,
        tried: list[StrategyName],
    ) -> ExtractionResult:
        logger.info(
            "pdf.recover.best_attempt",
            extra={"strategy": best.strategy.value, "chars": len(best.text), "readable_ratio": round(best.readable_ratio, 3)},
        )

        if self.ai_backend is not None and best.readable_ratio < t.RECOVERY_AI_BELOW_READABLE:
            cleaned = await self.ai_backend.cleanup(best.text, RECOVERY_SOURCE_KIND)
            if cleaned and cleaned != best.text and len(cleaned) > len(best.text) * t.RECOVERY_MIN_KEEP_FRACTION:
                logger.info("pdf.recover.ai_cleaned", extra={"chars": len(cleaned)})
                return ExtractionResult(
                    text=cleaned,
                    strategy=best.strategy,
                    readable_ratio=readable_ratio(cleaned),
                    profile=profile,
                    strategies_tried=tried,
                    ai_recovered=True,
                )
            logger.info("pdf.recover.ai_not_better")

        return ExtractionResult(
            text=best.text,
            strategy=best.strategy,
            readable_ratio=best.readable_ratio,
            profile=profile,
            strategies_tried=tried,
        )


__all__ = [
    "AttemptOutcome",
    "PdfExtractionOrchestrator",
    "extraction_failure_message",
    "reduce_attempt",
    "strategy_order",
]
