"""Simple-Render: renderer text items joined by their end-of-line flags."""

import asyncio
import logging
from typing import Iterable

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.quality import readable_ratio
from survey_ingest.pdf.render import has_pdf_header, opened_pdf
from survey_ingest.pdf.types import TextItem

logger = logging.getLogger("survey_ingest.pdf.strategies.simple_render")


def join_items(items: Iterable[TextItem]) -> str:
    return "".join(
        item.text + ("\n" if item.has_eol else " ")
        for item in items
        if item.text.strip()
    )


def simple_render_text(data: bytes) -> str:
    if not has_pdf_header(data):
        raise ExtractionError("Invalid PDF file format")

    full_text = ""
    with opened_pdf(data) as doc:
        for number in range(1, min(doc.page_count, t.SIMPLE_MAX_PAGES) + 1):
            try:
                page_text = join_items(doc.get_page(number).text_items(normalize_whitespace=True))
            except Exception as e:
                logger.warning("pdf.simple_render.page_failed", extra={"page": number, "error": str(e)})
                continue
            if page_text.strip():
                full_text += page_text + "\n\n"

    text = full_text.strip()
    if not text:
        raise ExtractionError("No readable text found in PDF")

    ratio = readable_ratio(text)
    if ratio <= t.SIMPLE_MIN_READABLE:
        raise ExtractionError(f"Rendered text looks like binary data ({ratio:.1%} readable)")

    logger.info("pdf.simple_render.ok", extra={"chars": len(text), "readable_ratio": round(ratio, 3)})
    return text


async def extract_simple_render(upload: UploadedFile) -> str:
    return await asyncio.to_thread(simple_render_text, upload.data)
