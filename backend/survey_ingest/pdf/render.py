"""survey_ingest/pdf/render.py

PDF rendering adapter.

Every backend exposes the same page model: positioned text items with a
6-value transform (element 4 = x, 5 = y measured upwards, |element 0| = font
size) and an end-of-line flag, plus a best-effort image check.

Preferred backend:
1) PyMuPDF (fitz)
2) pdfplumber
3) pypdf (very basic)
"""

from __future__ import annotations

import io
import logging
import re
from contextlib import contextmanager
from typing import Iterator, Protocol

from survey_ingest.pdf.errors import RenderError
from survey_ingest.pdf.types import TextItem

logger = logging.getLogger("survey_ingest.pdf.render")

PDF_MAGIC = b"%PDF-"

_WS_RE = re.compile(r"\s+")


class RenderedPage(Protocol):
    def text_items(self, *, normalize_whitespace: bool = False) -> list[TextItem]:
        ...

    def has_images(self) -> bool:
        ...


class RenderedDocument(Protocol):
    backend: str
    page_count: int

    def get_page(self, number: int) -> RenderedPage:
        """1-based page access."""
        ...

    def close(self) -> None:
        ...


def has_pdf_header(data: bytes) -> bool:
    return data[:8].lstrip().startswith(PDF_MAGIC)


def _norm(text: str, normalize_whitespace: bool) -> str:
    return _WS_RE.sub(" ", text) if normalize_whitespace else text


def _matrix(size: float, x: float, y: float) -> tuple[float, float, float, float, float, float]:
    return (float(size), 0.0, 0.0, float(size), float(x), float(y))


# ---------------------------------------------------------------------------
# PyMuPDF
# ---------------------------------------------------------------------------


class _PyMuPDFPage:
    def __init__(self, page):
        self._page = page

    def text_items(self, *, normalize_whitespace: bool = False) -> list[TextItem]:
        height = self._page.rect.height
        items: list[TextItem] = []
        data = self._page.get_text("dict")
        for block in data.get("blocks", []):
            if block.get("type", 0) != 0:
                continue
            for line in block.get("lines", []):
                spans = line.get("spans", [])
                for i, span in enumerate(spans):
                    x, y = span.get("origin", (0.0, 0.0))
                    items.append(
                        TextItem(
                            text=_norm(span.get("text", ""), normalize_whitespace),
                            transform=_matrix(span.get("size", 0.0), x, height - y),
                            has_eol=(i == len(spans) - 1),
                        )
                    )
        return items

    def has_images(self) -> bool:
        return len(self._page.get_images(full=True)) > 0


class _PyMuPDFDocument:
    backend = "pymupdf"

    def __init__(self, data: bytes):
        import fitz  # type: ignore

        self._doc = fitz.open(stream=data, filetype="pdf")
        if self._doc.needs_pass:
            self._doc.close()
            raise RenderError("PDF is password-protected")
        self.page_count = self._doc.page_count

    def get_page(self, number: int) -> RenderedPage:
        return _PyMuPDFPage(self._doc.load_page(number - 1))

    def close(self) -> None:
        self._doc.close()


# ---------------------------------------------------------------------------
# pdfplumber
# ---------------------------------------------------------------------------


class _PdfPlumberPage:
    def __init__(self, page):
        self._page = page

    def text_items(self, *, normalize_whitespace: bool = False) -> list[TextItem]:
        height = float(self._page.height)
        words = self._page.extract_words(
            keep_blank_chars=True,
            use_text_flow=True,
            extra_attrs=["size"],
        )
        items: list[TextItem] = []
        for i, w in enumerate(words):
            size = float(w.get("size") or 0.0)
            nxt = words[i + 1] if i + 1 < len(words) else None
            eol = nxt is None or abs(float(nxt["top"]) - float(w["top"])) > max(size, 1.0) * 0.5
            items.append(
                TextItem(
                    text=_norm(w.get("text", ""), normalize_whitespace),
                    transform=_matrix(size, w["x0"], height - float(w["bottom"])),
                    has_eol=eol,
                )
            )
        return items

    def has_images(self) -> bool:
        return len(self._page.images) > 0


class _PdfPlumberDocument:
    backend = "pdfplumber"

    def __init__(self, data: bytes):
        import pdfplumber  # type: ignore

        self._pdf = pdfplumber.open(io.BytesIO(data))
        self.page_count = len(self._pdf.pages)

    def get_page(self, number: int) -> RenderedPage:
        return _PdfPlumberPage(self._pdf.pages[number - 1])

    def close(self) -> None:
        self._pdf.close()


# ---------------------------------------------------------------------------
# pypdf (weak fallback)
# ---------------------------------------------------------------------------


class _PypdfPage:
    def __init__(self, page):
        self._page = page

    def text_items(self, *, normalize_whitespace: bool = False) -> list[TextItem]:
        items: list[TextItem] = []

        def visitor(text, cm, tm, font_dict, font_size):
            if not text:
                return
            x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
            y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
            size = abs(font_size * tm[0] * cm[0]) or font_size or 0.0
            items.append(
                TextItem(
                    text=_norm(text.rstrip("\n"), normalize_whitespace),
                    transform=_matrix(size, x, y),
                    has_eol=text.endswith("\n"),
                )
            )

        self._page.extract_text(visitor_text=visitor)
        return items

    def has_images(self) -> bool:
        return len(self._page.images) > 0


class _PypdfDocument:
    backend = "pypdf"

    def __init__(self, data: bytes):
        from pypdf import PdfReader  # type: ignore

        self._reader = PdfReader(io.BytesIO(data))
        if self._reader.is_encrypted:
            raise RenderError("PDF is password-protected")
        self.page_count = len(self._reader.pages)

    def get_page(self, number: int) -> RenderedPage:
        return _PypdfPage(self._reader.pages[number - 1])

    def close(self) -> None:
        pass


_BACKENDS = (_PyMuPDFDocument, _PdfPlumberDocument, _PypdfDocument)


def open_pdf(data: bytes) -> RenderedDocument:
    """Open with the first backend that accepts the bytes."""
    if not data:
        raise RenderError("Empty PDF bytes")

    errors: list[str] = []
    for backend in _BACKENDS:
        try:
            doc = backend(data)
        except RenderError:
            raise
        except Exception as e:
            logger.debug("pdf.backend_failed", extra={"backend": backend.backend, "error": str(e)})
            errors.append(f"{backend.backend}: {e}")
            continue
        if doc.page_count < 1:
            doc.close()
            errors.append(f"{backend.backend}: no pages")
            continue
        return doc

    raise RenderError("No PDF backend could open the document (" + "; ".join(errors) + ")")


@contextmanager
def opened_pdf(data: bytes) -> Iterator[RenderedDocument]:
    doc = open_pdf(data)
    try:
        yield doc
    finally:
        doc.close()
