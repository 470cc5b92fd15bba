"""survey_ingest/documents/docx_extract.py

DOCX -> text in up to three passes:
1) mammoth HTML conversion (keeps headings, paragraphs, list items)
2) python-docx raw text (paragraphs, then table rows)
3) mammoth HTML conversion with an explicit heading style map

The first pass that yields at least DOCX_MIN_LENGTH characters wins. If every
pass fails or comes up short, the longest non-empty result is used; if there
is none, the last underlying error is classified into a user-facing AppError.
"""

import html
import io
import logging
import re
from typing import Callable

import mammoth
from docx import Document as DocxDocument

from survey_ingest.core import AppError, ErrorCode, ErrorReason
from survey_ingest.core.errors import unprocessable

logger = logging.getLogger("survey_ingest.documents.docx")

DOCX_MIN_LENGTH = 50

HEADING_STYLE_MAP = "\n".join(
    [
        "p[style-name='Heading 1'] => h1:fresh",
        "p[style-name='Heading 2'] => h2:fresh",
        "p[style-name='Heading 3'] => h3:fresh",
        "p[style-name='Title'] => h1:fresh",
        "p[style-name='Subtitle'] => h2:fresh",
    ]
)

_HTML_RULES = [
    (re.compile(r"<h[1-6][^>]*>", re.I), "\n\n"),
    (re.compile(r"</h[1-6]>", re.I), "\n"),
    (re.compile(r"<p[^>]*>", re.I), "\n"),
    (re.compile(r"</p>", re.I), "\n"),
    (re.compile(r"<li[^>]*>", re.I), "\n• "),
    (re.compile(r"</li>", re.I), ""),
    (re.compile(r"<br\s*/?>", re.I), "\n"),
    (re.compile(r"<[^>]+>"), ""),
]
_EXCESS_BLANK_RE = re.compile(r"\n\s*\n\s*\n+")
_SPACES_RE = re.compile(r"[ \t]+")
_LEADING_SPACE_RE = re.compile(r"\n ")


def html_to_text(markup: str) -> str:
    text = markup or ""
    for pattern, replacement in _HTML_RULES:
        text = pattern.sub(replacement, text)
    text = html.unescape(text).replace("\u00a0", " ")
    return _EXCESS_BLANK_RE.sub("\n\n", text).strip()


def normalize_docx_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _EXCESS_BLANK_RE.sub("\n\n", text)
    text = _SPACES_RE.sub(" ", text)
    text = _LEADING_SPACE_RE.sub("\n", text)
    return text.strip()


def _html_pass(data: bytes) -> str:
    result = mammoth.convert_to_html(io.BytesIO(data))
    if result.messages:
        logger.info("docx.conversion_messages", extra={"count": len(result.messages)})
    return html_to_text(result.value)


def _raw_text_pass(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))
    parts = [p.text for p in doc.paragraphs if p.text.strip()]

    for table in doc.tables:
        for row in table.rows:
            row_text = " | ".join(cell.text.strip() for cell in row.cells if cell.text.strip())
            if row_text:
                parts.append(row_text)
    return "\n".join(parts).strip()


def _style_map_pass(data: bytes) -> str:
    result = mammoth.convert_to_html(io.BytesIO(data), style_map=HEADING_STYLE_MAP)
    return html_to_text(result.value)


PASSES: list[tuple[str, Callable[[bytes], str]]] = [
    ("html", _html_pass),
    ("raw_text", _raw_text_pass),
    ("style_map", _style_map_pass),
]


def classify_docx_error(err: Exception | None) -> AppError:
    detail = str(err) if err else "no text content found after trying all extraction methods"
    lowered = detail.lower()

    if "zip" in lowered or "corrupt" in lowered or "package not found" in lowered:
        return unprocessable(
            ErrorCode.DOCX_CORRUPTED,
            ErrorReason.DOCX_INVALID,
            "DOCX file appears to be corrupted or is not a valid DOCX format. "
            "Please try saving the document again or use a different file.",
        )
    if "password" in lowered or "protected" in lowered or "encrypt" in lowered:
        return unprocessable(
            ErrorCode.DOCX_PROTECTED,
            ErrorReason.DOCX_PROTECTED,
            "DOCX file is password-protected. Please remove password protection and try again.",
        )
    return unprocessable(
        ErrorCode.DOCX_FAILED,
        ErrorReason.DOCX_INVALID,
        f"Failed to extract text from DOCX file: {detail}. "
        "Please ensure the file is a valid, unprotected DOCX document.",
    )


def extract_docx_text(data: bytes, *, passes: list[tuple[str, Callable[[bytes], str]]] | None = None) -> str:
    fallback = ""
    last_error: Exception | None = None

    for name, run in passes or PASSES:
        try:
            text = normalize_docx_text(run(data))
        except Exception as e:
            last_error = e
            logger.info("docx.pass_failed", extra={"method": name, "error": str(e)})
            continue

        if len(text) >= DOCX_MIN_LENGTH:
            logger.info("docx.extracted", extra={"method": name, "chars": len(text)})
            return text
        if len(text) > len(fallback):
            fallback = text

    if fallback:
        logger.info("docx.extracted_short", extra={"chars": len(fallback)})
        return fallback

    raise classify_docx_error(last_error)
