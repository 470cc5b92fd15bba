"""survey_ingest/pdf/types.py

Lightweight dataclasses for PDF detection, strategy attempts and results.
Design goals:
- immutable values; the orchestrator owns attempts only for one call
- renderer-agnostic text items (PDF.js-style transform matrix)
"""

from dataclasses import dataclass, field
from enum import Enum


class StrategyName(str, Enum):
    BASIC_PATTERN = "basic-pattern"
    STRUCTURE_AWARE = "structure-aware"
    SIMPLE_RENDER = "simple-render"
    OCR_FALLBACK = "ocr-fallback"
    CORRUPTED_RECOVERY = "corrupted-recovery"
    AI_INTERPRETATION = "ai-interpretation"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


@dataclass(frozen=True)
class TextItem:
    text: str
    # (a, b, c, d, x, y); |a| is the font size
    transform: tuple[float, float, float, float, float, float] = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
    has_eol: bool = False

    @property
    def x(self) -> float:
        return self.transform[4]

    @property
    def y(self) -> float:
        return self.transform[5]

    @property
    def font_size(self) -> float:
        return abs(self.transform[0])


@dataclass(frozen=True)
class PdfProfile:
    is_text_based: bool
    is_scanned: bool
    has_images: bool
    complexity: Complexity
    recommended_strategy: StrategyName

    # diagnostics only
    text_length: int = 0
    item_count: int = 0
    readable_ratio: float = 0.0
    corruption: float = 0.0
    detection_failed: bool = False

    def describe(self) -> str:
        kind = "Text-based" if self.is_text_based else "Image/Scanned"
        return f"{kind} ({self.complexity.value} complexity)"


@dataclass(frozen=True)
class TextQuality:
    char_count: int
    word_count: int
    readable_ratio: float  # 0.0 - 1.0
    corruption_level: float  # 0.0 - 1.0


@dataclass(frozen=True)
class ExtractionAttempt:
    strategy: StrategyName
    text: str
    readable_ratio: float


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    strategy: StrategyName
    readable_ratio: float
    profile: PdfProfile
    strategies_tried: list[StrategyName] = field(default_factory=list)
    ai_recovered: bool = False
