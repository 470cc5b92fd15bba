"""Structure-Aware: rebuild lines and paragraphs from positioned text items.

Layout inference is approximate by nature. The rules below are deterministic:
- vertical jump > 1.5 x font size, or a font size change > 2 -> blank line
- vertical jump > 0.8 x font size, or a left-margin reset   -> line break
- otherwise                                                  -> single space
- a font size increase > 2 also forces a blank line (heading)
"""

import asyncio
import logging
import re
from typing import Iterable

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.quality import glyph_run_pattern, readable_ratio
from survey_ingest.pdf.render import has_pdf_header, opened_pdf
from survey_ingest.pdf.types import TextItem

logger = logging.getLogger("survey_ingest.pdf.strategies.structure_aware")

_DEBRIS_PATTERNS = [
    re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]"),
    re.compile(r"/\w+\s+\d+\s+\d+\s+R"),
    re.compile(r"<<[^>]*>>"),
    re.compile(r"stream\s*[\r\n]"),
    re.compile(r"endstream"),
    re.compile(r"BT\s+ET"),
    re.compile(r"Tf\s+\d+"),
    re.compile(r"Td\s+[\d.-]+\s+[\d.-]+"),
]


def clean_item_text(text: str, glyph_runs: re.Pattern) -> str:
    for pattern in _DEBRIS_PATTERNS:
        text = pattern.sub("", text)
    return glyph_runs.sub(" ", text).strip()


def assemble_page(items: Iterable[TextItem], denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS) -> str:
    glyph_runs = glyph_run_pattern(denylist)
    page_text = ""
    last_y = None
    last_font = None

    for item in items:
        if not item.text.strip():
            continue
        clean = clean_item_text(item.text, glyph_runs)
        if not clean or readable_ratio(clean) < t.STRUCTURE_ITEM_MIN_READABLE:
            continue

        x, y, font = item.x, item.y, item.font_size

        if last_y is not None:
            y_diff = abs(y - last_y)
            font_change = abs(font - last_font)
            settled = page_text.endswith((" ", "\n"))

            if y_diff > font * t.STRUCTURE_PARAGRAPH_GAP or font_change > t.STRUCTURE_FONT_DELTA:
                page_text += "\n\n"
            elif y_diff > font * t.STRUCTURE_LINE_GAP:
                page_text += "\n"
            elif x < t.STRUCTURE_LEFT_MARGIN and page_text and not settled:
                page_text += "\n"
            elif not settled:
                page_text += " "

        # Heading heuristic
        if last_font and font > last_font + t.STRUCTURE_FONT_DELTA:
            page_text += "\n\n"

        page_text += clean
        last_y, last_font = y, font

    return page_text


def normalize_layout(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n\s*\n\s*\n+", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = text.replace("\n ", "\n")
    return text.strip()


def structure_aware_text(data: bytes, denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS) -> str:
    if not has_pdf_header(data):
        raise ExtractionError("Invalid PDF file format")

    pages: list[str] = []
    with opened_pdf(data) as doc:
        max_pages = min(doc.page_count, t.STRUCTURE_MAX_PAGES)
        for number in range(1, max_pages + 1):
            try:
                items = doc.get_page(number).text_items(normalize_whitespace=False)
                page_text = assemble_page(items, denylist)
            except Exception as e:
                logger.warning("pdf.structure_aware.page_failed", extra={"page": number, "error": str(e)})
                continue
            if page_text.strip():
                pages.append(page_text)

    combined = "\n\n".join(pages).strip()
    if len(combined) <= t.STRUCTURE_MIN_LENGTH:
        raise ExtractionError("Structure-aware extraction found too little text")

    text = normalize_layout(combined)
    ratio = readable_ratio(text)
    if ratio <= t.STRUCTURE_MIN_READABLE:
        raise ExtractionError(f"Structure-aware text is mostly non-readable ({ratio:.1%} readable)")

    logger.info(
        "pdf.structure_aware.ok",
        extra={"pages": len(pages), "chars": len(text), "readable_ratio": round(ratio, 3)},
    )
    return text


async def extract_structure_aware(upload: UploadedFile, denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS) -> str:
    return await asyncio.to_thread(structure_aware_text, upload.data, denylist)
