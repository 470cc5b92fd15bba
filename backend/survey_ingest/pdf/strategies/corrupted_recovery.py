"""Corrupted-Recovery: last non-AI resort for badly damaged files.

Only runs when everything else failed, so it accepts almost anything that
reads like words: numbered items, domain keywords with context, sentences.
"""

import asyncio
import logging
import re
from typing import Sequence

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.strategies._raw import decode_strict_ascii

logger = logging.getLogger("survey_ingest.pdf.strategies.corrupted_recovery")

_NUMBERED_ITEM_RE = re.compile(r"\d+\.\s*[A-Za-z][^0-9\n]{10,}")
_SENTENCE_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[a-z]+)*[.!?]")


def keyword_context_pattern(keywords: Sequence[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b\w*(?:{alternatives})\w*\b[^\n]{{0,50}}", re.I)


def corrupted_recovery_text(data: bytes, keywords: Sequence[str] = t.DEFAULT_DOMAIN_KEYWORDS) -> str:
    raw = decode_strict_ascii(data)
    sections: list[str] = []

    numbered = _NUMBERED_ITEM_RE.findall(raw)
    if numbered:
        sections.append("\n\n".join(numbered))

    if keywords:
        context = [m for m in keyword_context_pattern(keywords).findall(raw) if len(m) > 10]
        if context:
            sections.append("\n".join(context))

    sentences = _SENTENCE_RE.findall(raw)
    if sentences:
        sections.append(" ".join(sentences))

    text = "\n\n".join(sections)
    text = re.sub(r"[^\x20-\x7E\s]", "", text)
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"([.!?])\s*([A-Z])", r"\1\n\2", text).strip()

    if len(text) <= t.CORRUPTED_MIN_LENGTH:
        raise ExtractionError("No readable content found in corrupted PDF")

    logger.info(
        "pdf.corrupted_recovery.ok",
        extra={"numbered": len(numbered), "sentences": len(sentences), "chars": len(text)},
    )
    return text


async def extract_corrupted_recovery(upload: UploadedFile, keywords: Sequence[str] = t.DEFAULT_DOMAIN_KEYWORDS) -> str:
    return await asyncio.to_thread(corrupted_recovery_text, upload.data, keywords)
