"""survey_ingest/llm/text_service.py

AI text cleanup capability.

The pipeline never reads credentials itself: it receives an optional
`AiTextService`. `build_ai_backend()` returns None when no key is configured,
and every AI-dependent stage is skipped in that case.

`cleanup()` never raises. Any failure (provider error, timeout, a reply that
is too short or cut off at the token limit) returns the input unchanged so
callers can fall back to non-AI text.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Protocol

from survey_ingest.core.config import Settings, settings as default_settings
from survey_ingest.llm.client import llm_generate
from survey_ingest.llm.errors import LLMError
from survey_ingest.llm.providers.gemini import GeminiProvider
from survey_ingest.pdf.quality import corrupt_glyph_denylist, corruption_level
from survey_ingest.pdf.thresholds import (
    CLEANUP_MIN_INPUT_CHARS,
    CLEANUP_MIN_OUTPUT_CHARS,
    CLEANUP_RECONSTRUCT_CORRUPTION,
    DEFAULT_DOMAIN_KEYWORDS,
)

logger = logging.getLogger("survey_ingest.llm.text_service")


class CleanupMode(str, Enum):
    TIDY = "tidy"
    RECONSTRUCT = "reconstruct"


class AiTextService(Protocol):
    async def cleanup(self, text: str, source_kind: str, *, mode: CleanupMode | None = None) -> str:
        ...


def select_cleanup_mode(text: str, denylist: frozenset[str] | None = None) -> CleanupMode:
    level = corruption_level(text, denylist or corrupt_glyph_denylist())
    if level > CLEANUP_RECONSTRUCT_CORRUPTION:
        return CleanupMode.RECONSTRUCT
    return CleanupMode.TIDY


class GeminiTextService:
    """Gemini-backed cleanup. Sync SDK calls run in a worker thread."""

    def __init__(self, cfg: Settings, provider: GeminiProvider | None = None):
        self.cfg = cfg
        self.provider = provider or GeminiProvider(api_key=cfg.GEMINI_API_KEY)
        self.denylist = corrupt_glyph_denylist(cfg.PDF_CORRUPT_GLYPHS)

    async def cleanup(self, text: str, source_kind: str, *, mode: CleanupMode | None = None) -> str:
        if not text or len(text) < CLEANUP_MIN_INPUT_CHARS:
            return text

        mode = mode or select_cleanup_mode(text, self.denylist)
        prompt_name = "cleanup_reconstruct" if mode == CleanupMode.RECONSTRUCT else "cleanup_tidy"
        variables = {
            "source_kind": source_kind,
            "content": text,
            "domain_hints": ", ".join(f'"{k}"' for k in DEFAULT_DOMAIN_KEYWORDS),
        }

        try:
            resp = await asyncio.wait_for(
                asyncio.to_thread(
                    llm_generate,
                    purpose=f"document_cleanup_{mode.value}",
                    prompt_name=prompt_name,
                    prompt_version="v1",
                    variables=variables,
                    provider=self.provider,
                    cfg=self.cfg,
                ),
                timeout=self.cfg.AI_CLEANUP_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "ai_cleanup.timeout",
                extra={"mode": mode.value, "timeout_s": self.cfg.AI_CLEANUP_TIMEOUT_SECONDS},
            )
            return text
        except LLMError as e:
            logger.warning("ai_cleanup.failed", extra={"mode": mode.value, "error": str(e)})
            return text

        cleaned = resp.output_text.strip()
        if resp.truncated:
            logger.warning(
                "ai_cleanup.truncated",
                extra={"mode": mode.value, "output_tokens": resp.output_tokens},
            )
            return text
        if len(cleaned) <= CLEANUP_MIN_OUTPUT_CHARS:
            logger.info("ai_cleanup.too_short", extra={"mode": mode.value, "chars": len(cleaned)})
            return text

        logger.info(
            "ai_cleanup.ok",
            extra={"mode": mode.value, "input_chars": len(text), "output_chars": len(cleaned)},
        )
        return cleaned


def build_ai_backend(cfg: Settings | None = None) -> AiTextService | None:
    cfg = cfg or default_settings
    if cfg.LLM_PROVIDER != "gemini" or not cfg.GEMINI_API_KEY:
        logger.info("ai_backend.disabled", extra={"provider": cfg.LLM_PROVIDER})
        return None
    return GeminiTextService(cfg)
