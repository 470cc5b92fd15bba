"""Basic-Pattern: blind regex scan of the raw bytes.

No page model at all, so it carries the strictest quality bar.
"""

import asyncio
import logging
import re

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.quality import readable_ratio
from survey_ingest.pdf.strategies._raw import (
    LINE_SPLIT_RE,
    LITERAL_RE,
    TJ_ARRAY_RE,
    TJ_SINGLE_RE,
    decode_printable,
    has_alnum,
    literal_fragments,
    long_runs,
    unescape_literal,
)
from survey_ingest.pdf.thresholds import BASIC_MIN_LENGTH, BASIC_MIN_READABLE

logger = logging.getLogger("survey_ingest.pdf.strategies.basic_pattern")

_STRUCTURAL_RE = re.compile(r"\b(obj|endobj|stream|endstream|xref|trailer)\b", re.I)
_OBJECT_REF_RE = re.compile(r"\b\d+\s+\d+\s+R\b")
_HEX_ID_RE = re.compile(r"\b[A-F0-9]{8,}\b")
_SENTENCE_GAP_RE = re.compile(r"([.!?])\s*([A-Z])")
_WS_RE = re.compile(r"\s+")


def _line_fragments(line: str) -> list[str]:
    found: list[tuple[int, str]] = []

    if "TJ" in line:
        for m in TJ_ARRAY_RE.finditer(line):
            for pos, value in literal_fragments(m.group(1)):
                found.append((m.start(1) + pos, value))
    if "Tj" in line:
        for m in TJ_SINGLE_RE.finditer(line):
            value = unescape_literal(m.group(1)).strip()
            if value and has_alnum(value):
                found.append((m.start(), value))

    if not found and LITERAL_RE.search(line):
        found = literal_fragments(line)

    if found:
        return [value for _, value in sorted(found)]
    return long_runs(line)


def clean_basic_text(text: str) -> str:
    text = _WS_RE.sub(" ", text)
    text = _SENTENCE_GAP_RE.sub(r"\1 \2", text).strip()
    text = _STRUCTURAL_RE.sub("", text)
    text = _OBJECT_REF_RE.sub("", text)
    text = _HEX_ID_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def basic_pattern_text(data: bytes) -> str:
    content = decode_printable(data)

    parts: list[str] = []
    for line in LINE_SPLIT_RE.split(content):
        parts.extend(_line_fragments(line))

    text = clean_basic_text(" ".join(parts))

    if len(text) <= BASIC_MIN_LENGTH:
        raise ExtractionError("Not enough readable text found by pattern matching")

    ratio = readable_ratio(text)
    if ratio <= BASIC_MIN_READABLE:
        raise ExtractionError(f"Pattern matching produced low-quality text ({ratio:.1%} readable)")

    logger.info("pdf.basic_pattern.ok", extra={"chars": len(text), "readable_ratio": round(ratio, 3)})
    return text


async def extract_basic_pattern(upload: UploadedFile) -> str:
    return await asyncio.to_thread(basic_pattern_text, upload.data)
