import io

import pytest

from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.pdf.types import Complexity, PdfProfile, StrategyName


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeAi:
    """In-memory AiTextService. `reply` is a string or a callable(text) -> str."""

    def __init__(self, reply=None):
        self.reply = reply
        self.calls = []

    async def cleanup(self, text, source_kind, *, mode=None):
        self.calls.append({"text": text, "source_kind": source_kind, "mode": mode})
        if self.reply is None:
            return text
        return self.reply(text) if callable(self.reply) else self.reply


@pytest.fixture
def fake_ai():
    return FakeAi


TEXT_BASED_PROFILE = PdfProfile(
    is_text_based=True,
    is_scanned=False,
    has_images=False,
    complexity=Complexity.SIMPLE,
    recommended_strategy=StrategyName.STRUCTURE_AWARE,
)

SCANNED_PROFILE = PdfProfile(
    is_text_based=False,
    is_scanned=True,
    has_images=True,
    complexity=Complexity.COMPLEX,
    recommended_strategy=StrategyName.OCR_FALLBACK,
)


@pytest.fixture
def profiles():
    return {"text_based": TEXT_BASED_PROFILE, "scanned": SCANNED_PROFILE}


@pytest.fixture
def pdf_upload():
    def _make(data: bytes = b"%PDF-1.4\n%%EOF\n", name: str = "survey.pdf") -> UploadedFile:
        return UploadedFile(data=data, name=name, mime_type="application/pdf")

    return _make


@pytest.fixture
def make_pdf():
    """Real single-font PDF built with PyMuPDF: one list of (text, font size) lines per page."""
    fitz = pytest.importorskip("fitz")

    def _make(pages: list[list[tuple[str, float]]]) -> bytes:
        doc = fitz.open()
        for lines in pages:
            page = doc.new_page()
            y = 72.0
            for text, size in lines:
                page.insert_text((72, y), text, fontsize=size)
                y += size * 1.6
        data = doc.tobytes()
        doc.close()
        return data

    return _make


@pytest.fixture
def make_docx():
    docx = pytest.importorskip("docx")

    def _make(heading: str, paragraphs: list[str]) -> bytes:
        d = docx.Document()
        d.add_heading(heading, level=1)
        for p in paragraphs:
            d.add_paragraph(p)
        buf = io.BytesIO()
        d.save(buf)
        return buf.getvalue()

    return _make
