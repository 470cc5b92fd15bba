"""survey_ingest/pdf/quality.py

Cheap, explainable heuristics to score extracted text.

Both scores are pure and O(n). They gate strategy acceptance and decide
whether an AI cleanup call is worth making.
"""

import re
from typing import Iterable

from survey_ingest.pdf.thresholds import DEFAULT_CORRUPT_GLYPHS
from survey_ingest.pdf.types import TextQuality


_READABLE_RE = re.compile(r"[A-Za-z0-9\s.,!?;:()\-]", re.ASCII)
_SYMBOL_RE = re.compile(r"[^\w\s.,!?;:()\-]", re.ASCII)
_WORD_RE = re.compile(r"\S+")


def corrupt_glyph_denylist(extra: str | Iterable[str] | None = None) -> frozenset[str]:
    """Built-in mojibake glyphs plus any configured extras."""
    if not extra:
        return DEFAULT_CORRUPT_GLYPHS
    return DEFAULT_CORRUPT_GLYPHS | frozenset(extra)


def glyph_run_pattern(denylist: frozenset[str]) -> re.Pattern:
    """Matches runs of denylisted glyphs; matches nothing for an empty denylist."""
    if not denylist:
        return re.compile(r"(?!)")
    return re.compile("[" + re.escape("".join(sorted(denylist))) + "]+")


def readable_ratio(text: str) -> float:
    if not text:
        return 0.0
    return len(_READABLE_RE.findall(text)) / max(1, len(text))


def symbol_ratio(text: str) -> float:
    if not text:
        return 0.0
    return len(_SYMBOL_RE.findall(text)) / len(text)


def glyph_ratio(text: str, denylist: frozenset[str] = DEFAULT_CORRUPT_GLYPHS) -> float:
    if not text:
        return 0.0
    return sum(1 for ch in text if ch in denylist) / len(text)


def corruption_level(text: str, denylist: frozenset[str] = DEFAULT_CORRUPT_GLYPHS) -> float:
    """0.0 for clean prose, 1.0 for pure noise. Empty text counts as fully corrupt."""
    if not text:
        return 1.0
    score = symbol_ratio(text) + glyph_ratio(text, denylist) + (1.0 - readable_ratio(text))
    return min(1.0, score)


def assess_text(text: str, denylist: frozenset[str] = DEFAULT_CORRUPT_GLYPHS) -> TextQuality:
    raw = text or ""
    return TextQuality(
        char_count=len(raw),
        word_count=len(_WORD_RE.findall(raw)),
        readable_ratio=round(readable_ratio(raw), 3),
        corruption_level=round(corruption_level(raw, denylist), 3),
    )
