"""OCR-Fallback: stream scraping for scanned, image-heavy or damaged PDFs.

No actual OCR happens here. It is the catch-all for degraded input: it decodes
the raw bytes as leniently as possible, pulls literal and hex-encoded strings
out of text objects, and guesses paragraph structure from punctuation and
capitalisation.
"""

import asyncio
import logging
import re

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.pdf import thresholds as t
from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.quality import glyph_run_pattern, readable_ratio
from survey_ingest.pdf.strategies._raw import (
    LINE_SPLIT_RE,
    TEXT_OBJECT_RE,
    decode_lenient,
    hex_fragments,
    literal_fragments,
    long_runs,
)

logger = logging.getLogger("survey_ingest.pdf.strategies.ocr_fallback")

_SCAN_ENCODINGS = ("utf-8", "latin-1", "ascii")
_ALNUM_WS_RE = re.compile(r"[A-Za-z0-9\s]", re.ASCII)

# Filter and encoding names never occur in survey prose
_PDF_ONLY_NAMES = (
    "FlateDecode|LZWDecode|DCTDecode|ASCII85Decode|ASCIIHexDecode|RunLengthDecode|"
    "WinAnsiEncoding|MacRomanEncoding|StandardEncoding|Identity-H|BaseFont|FontDescriptor|"
    "FontFile[23]?|MediaBox|CropBox|ProcSet|XObject|ExtGState|ToUnicode|CIDFontType[02]|"
    "ColorSpace|DeviceRGB|DeviceGray|BitsPerComponent"
)
# Dictionary keys that are also English words; stripped only when two or more are adjacent
_DICT_KEYS = (
    "Resources|Parent|Filter|Length|Type|Subtype|Font|Contents|Kids|Count|Pages?|Encoding|"
    "Producer|Creator|Catalog|Annots|Rotate|Width|Height|Image|Metadata|Info|Root|Size|Prev|Encrypt|Names"
)
_DICT_KEY_RUN = rf"(?:{_DICT_KEYS})(?:\s+\d+)?"

_PRE_CLEANUP = [
    # renderer signatures
    (re.compile(r"Skia/PDF\s+m\d+"), ""),
    (re.compile(r"Google\s+Docs\s+Renderer"), ""),
    (re.compile(r"(?:Written\s+by\s+)?MuPDF(?:\s+[\d.]+)?"), ""),
    (re.compile(r"[A-Z]\s*~\s*[A-Z]"), ""),
]
_POST_CLEANUP = [
    (re.compile(r"[\x00-\x1F\x7F-\x9F]"), " "),
    (re.compile(r"[^\x20-\x7E\s]"), " "),
    # operator and structure debris
    (re.compile(r"\b(obj|endobj|stream|endstream|xref|trailer|startxref)\b", re.I), ""),
    (re.compile(r"\b\d+\s+\d+\s+R\b"), ""),
    (re.compile(r"\b[A-F0-9]{8,}\b"), ""),
    (re.compile(r"\bq\s+Q\b", re.I), ""),
    (re.compile(r"\b[0-9.]+\s+[0-9.]+\s+[0-9.]+\s+[cr]g?\b", re.I), ""),
    (re.compile(r"\bBT\s+ET\b", re.I), ""),
    # dictionary debris
    (re.compile(r"(?<![A-Za-z0-9])/[A-Z][A-Za-z0-9+-]*"), " "),
    (re.compile(rf"\b(?:{_PDF_ONLY_NAMES})\b"), " "),
    (re.compile(rf"\b{_DICT_KEY_RUN}(?:\s+{_DICT_KEY_RUN})+\b"), " "),
    (re.compile(r"<<|>>"), " "),
    (re.compile(r"\s+"), " "),
]
_SENTENCE_BREAK_RE = re.compile(r"([.!?])\s*([A-Z])")
_TITLE_CASE_BREAK_RE = re.compile(r"([a-z])\s+([A-Z][a-z])")
_NUMBERED_SECTION_RE = re.compile(r"(?<![\d\n])\s*(\d{1,2}\.\s*[A-Z])")


def decode_for_scan(data: bytes) -> tuple[str, str]:
    """First encoding that yields a plausible share of text, else a byte filter."""
    for encoding in _SCAN_ENCODINGS:
        content = data.decode(encoding, errors="replace")
        if content and len(_ALNUM_WS_RE.findall(content)) > len(content) * t.OCR_DECODE_MIN_ALNUM:
            return content, encoding
    return decode_lenient(data), "bytes"


def _scan_segment(segment: str) -> list[tuple[int, str]]:
    return literal_fragments(segment, min_len=2) + hex_fragments(segment)


def scrape_fragments(content: str) -> list[str]:
    """Text objects are scanned as a whole; everything between them line by line."""
    parts: list[str] = []
    cursor = 0

    def scan_loose(chunk: str) -> None:
        for line in LINE_SPLIT_RE.split(chunk):
            found = _scan_segment(line)
            if found:
                parts.extend(value for _, value in sorted(found))
            else:
                parts.extend(long_runs(line))

    for m in TEXT_OBJECT_RE.finditer(content):
        scan_loose(content[cursor:m.start()])
        parts.extend(value for _, value in sorted(_scan_segment(m.group(1))))
        cursor = m.end()
    scan_loose(content[cursor:])
    return parts


def clean_ocr_text(text: str, denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS) -> str:
    for pattern, replacement in _PRE_CLEANUP:
        text = pattern.sub(replacement, text)
    # mojibake runs left by broken font maps
    text = glyph_run_pattern(denylist).sub(" ", text)
    for pattern, replacement in _POST_CLEANUP:
        text = pattern.sub(replacement, text)
    text = _SENTENCE_BREAK_RE.sub(r"\1\n\n\2", text)
    text = _TITLE_CASE_BREAK_RE.sub(r"\1\n\2", text).strip()

    # Keep numbered sections apart when there are several of them
    if len(_NUMBERED_SECTION_RE.findall(text)) >= 2:
        text = _NUMBERED_SECTION_RE.sub(r"\n\n\1", text).strip()
    return text


def ocr_fallback_text(data: bytes, denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS) -> str:
    content, encoding = decode_for_scan(data)
    text = clean_ocr_text(" ".join(scrape_fragments(content)), denylist)

    if len(text) <= t.OCR_MIN_LENGTH:
        raise ExtractionError("Stream scraping produced insufficient text")

    ratio = readable_ratio(text)
    if ratio <= t.OCR_MIN_READABLE:
        raise ExtractionError(f"Stream scraping produced low-quality text ({ratio:.1%} readable)")

    logger.info(
        "pdf.ocr_fallback.ok",
        extra={"encoding": encoding, "chars": len(text), "readable_ratio": round(ratio, 3)},
    )
    return text


async def extract_ocr_fallback(upload: UploadedFile, denylist: frozenset[str] = t.DEFAULT_CORRUPT_GLYPHS) -> str:
    return await asyncio.to_thread(ocr_fallback_text, upload.data, denylist)
