"""AI-Interpretation: hand a labelled sample of the raw file to the AI service.

Needs a configured backend; without one the strategy is never scheduled.
"""

import asyncio
import itertools
import logging
import re

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.llm.text_service import AiTextService, CleanupMode
from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.strategies._raw import decode_ai_sample

logger = logging.getLogger("survey_ingest.pdf.strategies.ai_interpretation")

_FRAGMENT_PATTERNS = (
    re.compile(r"\(([^)]{3,})\)"),
    re.compile(r"BT\s+(.*?)\s+ET", re.S),
    re.compile(r"Tj\s*([^%\n]{5,})"),
    re.compile(r"\b[A-Za-z]{3,}[^0-9\x00-\x1F]{0,50}\b"),
)

SOURCE_KIND = "corrupted PDF"


def build_interpretation_prompt(data: bytes) -> str:
    raw = decode_ai_sample(data)

    fragments: list[str] = []
    for pattern in _FRAGMENT_PATTERNS:
        matches = itertools.islice(pattern.finditer(raw), t.AI_MAX_FRAGMENTS_PER_PATTERN)
        fragments.extend(m.group(0) for m in matches)

    return "\n".join(
        [
            "=== RAW PDF CONTENT ===",
            raw[: t.AI_SAMPLE_CHARS],
            "\n=== EXTRACTED FRAGMENTS ===",
            "\n".join(fragments),
            "\n=== END ===",
        ]
    )


async def interpret_with_ai(upload: UploadedFile, ai: AiTextService | None) -> str:
    if ai is None:
        raise ExtractionError("AI interpretation requires a configured AI backend")

    prompt = await asyncio.to_thread(build_interpretation_prompt, upload.data)
    logger.info("pdf.ai_interpretation.request", extra={"prompt_chars": len(prompt)})

    interpreted = await ai.cleanup(prompt, SOURCE_KIND, mode=CleanupMode.RECONSTRUCT)

    # cleanup() hands back its input when the call fails
    if not interpreted or interpreted == prompt or len(interpreted) <= t.AI_MIN_LENGTH:
        raise ExtractionError("AI was unable to interpret the corrupted PDF content")

    logger.info("pdf.ai_interpretation.ok", extra={"chars": len(interpreted)})
    return interpreted
