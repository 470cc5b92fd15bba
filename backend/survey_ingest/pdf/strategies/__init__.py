"""PDF extraction strategies.

Each strategy is `async (UploadedFile) -> str` and raises ExtractionError when
it cannot produce acceptable text. None relies on another having run.
"""

from functools import partial
from typing import Awaitable, Callable, Sequence

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.llm.text_service import AiTextService
from survey_ingest.pdf.thresholds import DEFAULT_CORRUPT_GLYPHS, DEFAULT_DOMAIN_KEYWORDS
from survey_ingest.pdf.types import StrategyName
from survey_ingest.pdf.strategies.ai_interpretation import interpret_with_ai
from survey_ingest.pdf.strategies.basic_pattern import extract_basic_pattern
from survey_ingest.pdf.strategies.corrupted_recovery import extract_corrupted_recovery
from survey_ingest.pdf.strategies.ocr_fallback import extract_ocr_fallback
from survey_ingest.pdf.strategies.simple_render import extract_simple_render
from survey_ingest.pdf.strategies.structure_aware import extract_structure_aware

StrategyFn = Callable[[UploadedFile], Awaitable[str]]


def build_strategies(
    ai: AiTextService | None,
    *,
    denylist: frozenset[str] = DEFAULT_CORRUPT_GLYPHS,
    keywords: Sequence[str] = DEFAULT_DOMAIN_KEYWORDS,
) -> dict[StrategyName, StrategyFn]:
    """AI-Interpretation is only registered when a backend exists."""
    strategies: dict[StrategyName, StrategyFn] = {
        StrategyName.STRUCTURE_AWARE: partial(extract_structure_aware, denylist=denylist),
        StrategyName.SIMPLE_RENDER: extract_simple_render,
        StrategyName.BASIC_PATTERN: extract_basic_pattern,
        StrategyName.OCR_FALLBACK: partial(extract_ocr_fallback, denylist=denylist),
        StrategyName.CORRUPTED_RECOVERY: partial(extract_corrupted_recovery, keywords=keywords),
    }
    if ai is not None:
        strategies[StrategyName.AI_INTERPRETATION] = partial(interpret_with_ai, ai=ai)
    return strategies


__all__ = ["StrategyFn", "build_strategies"]
