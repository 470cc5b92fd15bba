"""survey_ingest/pdf/detect.py

First-page PDF classification.

The profile only decides strategy ORDER. Detection never fails the upload:
any error yields a conservative profile that puts raw-stream methods first.
"""

import logging
import re

from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.quality import readable_ratio
from survey_ingest.pdf.render import open_pdf
from survey_ingest.pdf.types import Complexity, PdfProfile, StrategyName

logger = logging.getLogger("survey_ingest.pdf.detect")

_CONTROL_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\s]")

SAFE_DEFAULT_PROFILE = PdfProfile(
    is_text_based=False,
    is_scanned=True,
    has_images=True,
    complexity=Complexity.COMPLEX,
    recommended_strategy=StrategyName.OCR_FALLBACK,
    detection_failed=True,
)


def corruption_signal(
    raw_text: str,
    denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS,
    patterns: tuple[str, ...] = t.DEFAULT_CORRUPT_PATTERNS,
) -> float:
    """Share of the first-page text that looks like encoding damage."""
    if not raw_text:
        return 0.0
    glyphs = sum(1 for ch in raw_text if ch in denylist)
    non_printable = len(_NON_PRINTABLE_RE.findall(raw_text))
    bigrams = sum(len(re.findall(p, raw_text)) for p in patterns)
    return min(1.0, (glyphs + non_printable + bigrams) / len(raw_text))


def classify(
    *,
    text_length: int,
    item_count: int,
    readable: float,
    corruption: float,
    has_images: bool,
    ai_available: bool,
) -> PdfProfile:
    is_text_based = text_length > t.DETECT_TEXT_BASED_MIN_TEXT and readable > t.DETECT_TEXT_BASED_READABLE_MIN
    is_scanned = text_length < t.DETECT_SCANNED_MIN_TEXT or readable < t.DETECT_SCANNED_READABLE_MIN
    is_corrupted = corruption > t.DETECT_CORRUPTION_MAX or readable < t.DETECT_CORRUPT_READABLE_MIN

    if is_corrupted and ai_available:
        complexity, recommended = Complexity.COMPLEX, StrategyName.AI_INTERPRETATION
    elif is_scanned or has_images:
        complexity, recommended = Complexity.COMPLEX, StrategyName.OCR_FALLBACK
    elif readable < t.DETECT_MODERATE_READABLE_MIN or item_count > t.DETECT_MODERATE_MAX_ITEMS:
        complexity, recommended = Complexity.MODERATE, StrategyName.STRUCTURE_AWARE
    else:
        complexity, recommended = Complexity.SIMPLE, StrategyName.STRUCTURE_AWARE

    return PdfProfile(
        is_text_based=is_text_based,
        is_scanned=is_scanned,
        has_images=has_images,
        complexity=complexity,
        recommended_strategy=recommended,
        text_length=text_length,
        item_count=item_count,
        readable_ratio=round(readable, 3),
        corruption=round(corruption, 3),
    )


def detect_pdf_type(
    data: bytes,
    *,
    ai_available: bool,
    denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS,
) -> PdfProfile:
    try:
        doc = open_pdf(data)
        try:
            first = doc.get_page(1)
            items = first.text_items()

            text_length = sum(len(i.text) for i in items)
            raw_text = " ".join(i.text for i in items)
            readable = readable_ratio(_CONTROL_RE.sub("", raw_text))
            corruption = corruption_signal(raw_text, denylist)

            # Image detection is a hint only
            try:
                has_images = first.has_images()
            except Exception as e:
                logger.warning("pdf.detect.image_check_failed", extra={"error": str(e)})
                has_images = False
        finally:
            doc.close()
    except Exception as e:
        logger.warning("pdf.detect.failed", extra={"error": str(e)})
        return SAFE_DEFAULT_PROFILE

    profile = classify(
        text_length=text_length,
        item_count=len(items),
        readable=readable,
        corruption=corruption,
        has_images=has_images,
        ai_available=ai_available,
    )
    logger.info(
        "pdf.detect.profile",
        extra={
            "backend": doc.backend,
            "text_length": profile.text_length,
            "item_count": profile.item_count,
            "readable_ratio": profile.readable_ratio,
            "corruption": profile.corruption,
            "has_images": profile.has_images,
            "complexity": profile.complexity.value,
            "recommended": profile.recommended_strategy.value,
        },
    )
    return profile
