import pytest

from survey_ingest.pdf.errors import ExtractionError
from survey_ingest.pdf.strategies import build_strategies
from survey_ingest.pdf.strategies._raw import decode_hex_string, unescape_literal
from survey_ingest.pdf.strategies.ai_interpretation import build_interpretation_prompt, interpret_with_ai
from survey_ingest.pdf.strategies.basic_pattern import basic_pattern_text
from survey_ingest.pdf.strategies.corrupted_recovery import corrupted_recovery_text
from survey_ingest.pdf.strategies.ocr_fallback import clean_ocr_text, ocr_fallback_text
from survey_ingest.pdf.strategies.simple_render import join_items, simple_render_text
from survey_ingest.pdf.types import StrategyName, TextItem
from survey_ingest.llm.text_service import CleanupMode


# Uncompressed content stream, the way simple generators write it
RAW_PDF = b"""%PDF-1.4
1 0 obj << /Type /Catalog >> endobj
4 0 obj << /Length 44 >>
stream
BT /F1 12 Tf 72 720 Td (Customer Satisfaction Survey) Tj ET
BT /F1 12 Tf 72 700 Td [(Please rate your experience) -250 (with our service today.)] TJ ET
BT /F1 12 Tf 72 680 Td (How likely are you to recommend us to a friend?) Tj ET
endstream
endobj
trailer << /Root 1 0 R >>
%%EOF
"""

# Encrypted streams leave only dictionary entries readable
ENCRYPTED_LIKE_PDF = (
    b"%PDF-1.7\n1 0 obj\n<< /Producer (Written by MuPDF 1.24.0) >>\nendobj\n"
    b"2 0 obj\n<< /Type /Page /Parent 3 0 R /Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>\nendobj\n"
    b"4 0 obj\n<< /Type /Font /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>\nendobj\n"
    b"5 0 obj\n<< /Length 256 /Filter /FlateDecode >>\nstream\n"
    + bytes(range(128, 256)) * 2
    + b"\nendstream\nendobj\n%%EOF\n"
)


def test_unescape_and_hex_helpers():
    assert unescape_literal(r"a\(b\)c\\d") == "a(b)c\\d"
    assert unescape_literal(r"\101\102") == "AB"
    assert decode_hex_string("48 65 6C 6C 6F") == "Hello"
    assert decode_hex_string("486") == ""


def test_build_strategies_skips_ai_without_backend(fake_ai):
    without = build_strategies(None)
    assert StrategyName.AI_INTERPRETATION not in without
    assert len(without) == 5

    with_ai = build_strategies(fake_ai())
    assert StrategyName.AI_INTERPRETATION in with_ai
    assert len(with_ai) == 6


# ---- Basic-Pattern ----

def test_basic_pattern_reads_tj_operators():
    text = basic_pattern_text(RAW_PDF)
    assert "Customer Satisfaction Survey" in text
    assert "Please rate your experience with our service today." in text
    assert "recommend us to a friend?" in text
    assert "endobj" not in text


def test_basic_pattern_rejects_short_output():
    with pytest.raises(ExtractionError):
        basic_pattern_text(b"%PDF-1.4\n(Hi) Tj\n%%EOF")


# ---- OCR-Fallback ----

def test_ocr_fallback_scrapes_text_objects():
    text = ocr_fallback_text(RAW_PDF)
    assert "Satisfaction" in text
    assert "experience" in text
    assert "friend?" in text


def test_ocr_fallback_reads_hex_strings():
    data = b"%PDF-1.4\nBT <53757276657920726573756C7473> Tj ET\n%%EOF"
    assert "Survey results" in ocr_fallback_text(data)


def test_ocr_fallback_rejects_pure_binary():
    with pytest.raises(ExtractionError):
        ocr_fallback_text(b"%PDF-1.4\n\x00\x01\x02\x03\n%%EOF")


def test_clean_ocr_text_drops_renderer_signatures():
    assert clean_ocr_text("Skia/PDF m116 Google Docs Renderer Survey results") == "Survey results"


def test_clean_ocr_text_strips_configured_glyphs():
    assert clean_ocr_text("Survey ## results") == "Survey ## results"
    assert clean_ocr_text("Survey ## results", frozenset("#")) == "Survey results"


def test_clean_ocr_text_drops_dictionary_debris():
    text = clean_ocr_text("Written by MuPDF 1.24.0 Survey intro /Type /Page text and/or more FlateDecode")
    assert text == "Survey intro text and/or more"

    debris = clean_ocr_text("Resources Parent WinAnsiEncoding Length 256 Filter")
    assert debris == ""

    # a lone key word in prose survives
    assert clean_ocr_text("Type of feedback you prefer") == "Type of feedback you prefer"


def test_ocr_fallback_rejects_encrypted_stream_debris():
    with pytest.raises(ExtractionError):
        ocr_fallback_text(ENCRYPTED_LIKE_PDF)


def test_ocr_fallback_uses_configured_denylist():
    strategies = build_strategies(None, denylist=frozenset("#"))
    assert strategies[StrategyName.OCR_FALLBACK].keywords == {"denylist": frozenset("#")}


def test_clean_ocr_text_splits_numbered_sections_only_when_several():
    several = clean_ocr_text("Intro text 1. Demographics age group 2. Feedback overall rating")
    assert "\n\n1." in several
    assert "\n\n2." in several

    single = clean_ocr_text("Question 1. Rate us")
    assert "\n\n1." not in single


# ---- Corrupted-Recovery ----

def test_corrupted_recovery_keeps_numbered_items_and_sentences():
    data = b"\x00\x01\xff 1. Demographics and background details\x02\n\xfe Your feedback matters.\n"
    text = corrupted_recovery_text(data)
    assert "Demographics and background details" in text
    assert "feedback" in text


def test_corrupted_recovery_rejects_noise():
    with pytest.raises(ExtractionError):
        corrupted_recovery_text(b"\x00\x01\x02abc\xff")


# ---- AI-Interpretation ----

def test_interpretation_prompt_is_labelled_and_bounded():
    prompt = build_interpretation_prompt(RAW_PDF + b"x" * 5000)
    assert prompt.startswith("=== RAW PDF CONTENT ===")
    assert "=== EXTRACTED FRAGMENTS ===" in prompt
    assert "(Customer Satisfaction Survey)" in prompt
    raw_section = prompt.split("\n=== EXTRACTED FRAGMENTS ===")[0]
    assert len(raw_section) <= len("=== RAW PDF CONTENT ===\n") + 2000 + 1


@pytest.mark.anyio
async def test_interpretation_uses_reconstruct_mode(fake_ai, pdf_upload):
    reply = "Customer Satisfaction Survey\n\n1. How would you rate your experience with us?"
    ai = fake_ai(reply)

    text = await interpret_with_ai(pdf_upload(RAW_PDF), ai)

    assert text == reply
    assert ai.calls[0]["mode"] == CleanupMode.RECONSTRUCT
    assert ai.calls[0]["source_kind"] == "corrupted PDF"


@pytest.mark.anyio
async def test_interpretation_fails_when_ai_echoes_prompt(fake_ai, pdf_upload):
    with pytest.raises(ExtractionError):
        await interpret_with_ai(pdf_upload(RAW_PDF), fake_ai())


@pytest.mark.anyio
async def test_interpretation_fails_without_backend(pdf_upload):
    with pytest.raises(ExtractionError):
        await interpret_with_ai(pdf_upload(RAW_PDF), None)


# ---- Simple-Render ----

def test_join_items_uses_end_of_line_flags():
    items = [
        TextItem("Survey", has_eol=False),
        TextItem("Title", has_eol=True),
        TextItem("   ", has_eol=True),
        TextItem("Body", has_eol=True),
    ]
    assert join_items(items) == "Survey Title\nBody\n"


def test_simple_render_rejects_non_pdf_bytes():
    with pytest.raises(ExtractionError, match="Invalid PDF"):
        simple_render_text(b"GIF89a not a pdf")


def test_simple_render_reads_real_pdf(make_pdf):
    data = make_pdf([[("Team Feedback Survey", 16), ("How was your week overall?", 12)]])
    text = simple_render_text(data)
    assert "Team Feedback Survey" in text
    assert "How was your week overall?" in text
