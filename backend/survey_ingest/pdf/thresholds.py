"""survey_ingest/pdf/thresholds.py

Tuning knobs for detection, strategy acceptance and orchestration.
Each strategy has its own bar; they are deliberately different.
"""

from survey_ingest.pdf.types import StrategyName


# Known mojibake / replacement glyphs. Extended at runtime by PDF_CORRUPT_GLYPHS.
DEFAULT_CORRUPT_GLYPHS: frozenset[str] = frozenset(
    ["\ufffd", "~", "\u00d7", "\u00f7"] + [chr(cp) for cp in range(0x00A0, 0x00C0)]
)

# Corrupted bigrams observed when a font drops its first glyph or maps to symbols
DEFAULT_CORRUPT_PATTERNS: tuple[str, ...] = (
    r"\$\s*\]\s*/d\s*fu\s*y",
    r"urvey\s*uestions",
    r"&\s*\]\s*tw",
)

# Vocabulary the corrupted-file recovery anchors on
DEFAULT_DOMAIN_KEYWORDS: tuple[str, ...] = (
    "survey",
    "question",
    "feedback",
    "rating",
    "experience",
    "demographics",
    "participation",
    "preference",
    "feature",
)

# ---- detection ----
DETECT_CORRUPTION_MAX = 0.4
DETECT_CORRUPT_READABLE_MIN = 0.5
DETECT_SCANNED_MIN_TEXT = 20
DETECT_SCANNED_READABLE_MIN = 0.3
DETECT_MODERATE_READABLE_MIN = 0.7
DETECT_MODERATE_MAX_ITEMS = 1000
DETECT_TEXT_BASED_MIN_TEXT = 50
DETECT_TEXT_BASED_READABLE_MIN = 0.5

# ---- Basic-Pattern ----
BASIC_MIN_LENGTH = 50
BASIC_MIN_READABLE = 0.8

# ---- Structure-Aware ----
STRUCTURE_MAX_PAGES = 25
STRUCTURE_MIN_LENGTH = 50
STRUCTURE_MIN_READABLE = 0.7
STRUCTURE_ITEM_MIN_READABLE = 0.5
STRUCTURE_PARAGRAPH_GAP = 1.5  # x font size
STRUCTURE_LINE_GAP = 0.8  # x font size
STRUCTURE_FONT_DELTA = 2.0
STRUCTURE_LEFT_MARGIN = 100.0

# ---- Simple-Render ----
SIMPLE_MAX_PAGES = 20
SIMPLE_MIN_READABLE = 0.7

# ---- OCR-Fallback ----
OCR_DECODE_MIN_ALNUM = 0.1
OCR_MIN_LENGTH = 10
OCR_MIN_READABLE = 0.3

# ---- Corrupted-Recovery ----
CORRUPTED_MIN_LENGTH = 20

# ---- AI-Interpretation ----
AI_SAMPLE_CHARS = 2000
AI_MAX_FRAGMENTS_PER_PATTERN = 20
AI_MIN_LENGTH = 50

# ---- orchestration ----
ORCH_MIN_SUCCESS_LENGTH = 20
ORCH_MIN_BEST_LENGTH = 10
ORCH_DEFAULT_THRESHOLD = 0.6
ORCH_THRESHOLDS: dict[StrategyName, float] = {
    StrategyName.OCR_FALLBACK: 0.4,
    StrategyName.BASIC_PATTERN: 0.5,
    StrategyName.SIMPLE_RENDER: 0.5,
}
RECOVERY_AI_BELOW_READABLE = 0.7
RECOVERY_MIN_KEEP_FRACTION = 0.5

# ---- AI cleanup ----
CLEANUP_RECONSTRUCT_CORRUPTION = 0.7
CLEANUP_MIN_INPUT_CHARS = 20
CLEANUP_MIN_OUTPUT_CHARS = 30


def orchestration_threshold(strategy: StrategyName) -> float:
    return ORCH_THRESHOLDS.get(strategy, ORCH_DEFAULT_THRESHOLD)
