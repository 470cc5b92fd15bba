from survey_ingest.pdf.detect import SAFE_DEFAULT_PROFILE, classify, corruption_signal, detect_pdf_type
from survey_ingest.pdf.types import Complexity, StrategyName


def _classify(**overrides):
    params = dict(
        text_length=800,
        item_count=60,
        readable=0.95,
        corruption=0.01,
        has_images=False,
        ai_available=False,
    )
    params.update(overrides)
    return classify(**params)


def test_clean_text_pdf_is_simple_structure_aware():
    p = _classify()
    assert p.is_text_based and not p.is_scanned
    assert p.complexity == Complexity.SIMPLE
    assert p.recommended_strategy == StrategyName.STRUCTURE_AWARE


def test_corrupted_pdf_prefers_ai_when_available():
    p = _classify(readable=0.4, corruption=0.6, ai_available=True)
    assert p.complexity == Complexity.COMPLEX
    assert p.recommended_strategy == StrategyName.AI_INTERPRETATION


def test_corrupted_pdf_without_ai_falls_through_to_other_rules():
    p = _classify(readable=0.4, corruption=0.6, ai_available=False)
    assert p.recommended_strategy == StrategyName.STRUCTURE_AWARE
    assert p.complexity == Complexity.MODERATE


def test_little_text_means_scanned_and_ocr_first():
    p = _classify(text_length=5, item_count=1)
    assert p.is_scanned and not p.is_text_based
    assert p.recommended_strategy == StrategyName.OCR_FALLBACK
    assert p.complexity == Complexity.COMPLEX


def test_images_push_towards_ocr():
    p = _classify(has_images=True)
    assert p.recommended_strategy == StrategyName.OCR_FALLBACK


def test_many_items_is_moderate():
    p = _classify(item_count=1500)
    assert p.complexity == Complexity.MODERATE
    assert p.recommended_strategy == StrategyName.STRUCTURE_AWARE


def test_corruption_signal_counts_glyphs_and_known_bigrams():
    assert corruption_signal("") == 0.0
    assert corruption_signal("clean text") == 0.0
    assert corruption_signal("~~~~") == 1.0
    assert corruption_signal("xx urvey uestions xx") > 0.0


def test_detection_failure_returns_conservative_default():
    profile = detect_pdf_type(b"this is not a pdf at all", ai_available=True)
    assert profile == SAFE_DEFAULT_PROFILE
    assert profile.detection_failed
    assert profile.recommended_strategy == StrategyName.OCR_FALLBACK


def test_detects_text_based_pdf(make_pdf):
    data = make_pdf(
        [
            [
                ("Customer Experience Survey", 18),
                ("Please answer every question honestly and completely.", 12),
                ("Your feedback helps us improve the product for everyone.", 12),
            ]
        ]
    )
    profile = detect_pdf_type(data, ai_available=False)

    assert not profile.detection_failed
    assert profile.is_text_based
    assert not profile.is_scanned
    assert not profile.has_images
    assert profile.recommended_strategy == StrategyName.STRUCTURE_AWARE
