# survey_ingest/services/document_pipeline.py
"""
document_pipeline.py
- Purpose: Entry point for turning one uploaded file into text.
- Owns: size gate, dispatch by file type, empty-output check, optional AI
  cleanup, sanitized single-line output and bundle metadata.
- Design: One pipeline instance can serve many uploads. It holds configuration
  and collaborators only; all per-file state lives on the call stack.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from survey_ingest.core import ErrorCode, ErrorReason
from survey_ingest.core.config import Settings, settings as default_settings
from survey_ingest.core.errors import unprocessable, unsupported_file
from survey_ingest.core.request_context import set_context
from survey_ingest.documents.docx_extract import extract_docx_text
from survey_ingest.documents.sanitize import sanitize_for_forms
from survey_ingest.documents.uploads import (
    FileKind,
    UploadedFile,
    file_kind,
    get_file_type_description,
    is_supported_file_type,
)
from survey_ingest.llm.text_service import AiTextService
from survey_ingest.pdf.orchestrator import PdfExtractionOrchestrator
from survey_ingest.pdf.quality import assess_text, corrupt_glyph_denylist
from survey_ingest.pdf.types import ExtractionResult
from survey_ingest.schemas.document import DocumentContentBundle, DocumentMetadata
from survey_ingest.validations.file_validators import validate_upload_size

logger = logging.getLogger("survey_ingest.document_pipeline")

ProgressCallback = Callable[[int], None]

SUPPORTED_FORMATS_HINT = "Supported formats: TXT, PDF, DOCX, DOC."


@dataclass(frozen=True)
class RawExtraction:
    text: str
    file_type: FileKind
    pdf: ExtractionResult | None = None


class DocumentPipeline:
    def __init__(
        self,
        ai_backend: AiTextService | None = None,
        *,
        orchestrator: PdfExtractionOrchestrator | None = None,
        cfg: Settings | None = None,
    ):
        self.cfg = cfg or default_settings
        self.ai_backend = ai_backend
        self.denylist = corrupt_glyph_denylist(self.cfg.PDF_CORRUPT_GLYPHS)
        self.orchestrator = orchestrator or PdfExtractionOrchestrator(ai_backend, denylist=self.denylist)

    # -------------------------
    # Per-type readers
    # -------------------------
    @staticmethod
    def _read_text(upload: UploadedFile) -> str:
        return upload.data.decode("utf-8-sig", errors="replace")

    @staticmethod
    def _read_doc(upload: UploadedFile) -> str:
        try:
            return upload.data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise unprocessable(
                ErrorCode.DOC_CONVERSION_REQUIRED,
                ErrorReason.DOC_LEGACY_FORMAT,
                "DOC files require conversion to DOCX format for proper extraction. "
                "Please save as DOCX and try again.",
            ) from e

    @staticmethod
    def _read_unknown(upload: UploadedFile) -> str:
        try:
            return upload.data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise unsupported_file(
                f"Unsupported file type: {upload.mime_type or 'unknown'}. {SUPPORTED_FORMATS_HINT}",
                details={"name": upload.name, "mime_type": upload.mime_type},
            ) from e

    # -------------------------
    # Public API
    # -------------------------
    async def extract_raw(self, upload: UploadedFile) -> RawExtraction:
        """Extraction without AI cleanup, with PDF provenance when available."""
        validate_upload_size(upload, self.cfg.MAX_UPLOAD_BYTES)

        kind = file_kind(upload)
        pdf_result: ExtractionResult | None = None
        logger.info(
            "document.extract.start",
            extra={"file_type": kind.value, "size": upload.size, "supported": is_supported_file_type(upload)},
        )

        if kind == FileKind.TXT:
            text = self._read_text(upload)
        elif kind == FileKind.PDF:
            # Terminal failures already carry a user-facing message
            pdf_result = await self.orchestrator.extract(upload)
            text = pdf_result.text
        elif kind == FileKind.DOCX:
            text = await asyncio.to_thread(extract_docx_text, upload.data)
        elif kind == FileKind.DOC:
            text = self._read_doc(upload)
        else:
            text = self._read_unknown(upload)

        if not text or not text.strip():
            raise unprocessable(
                ErrorCode.EMPTY_CONTENT,
                ErrorReason.NO_READABLE_TEXT,
                "No readable text content found in the file.",
                details={"file_type": kind.value},
            )

        return RawExtraction(text=text.strip(), file_type=kind, pdf=pdf_result)

    async def extract_raw_document_content(self, upload: UploadedFile) -> str:
        return (await self.extract_raw(upload)).text

    async def _cleanup(self, text: str, upload: UploadedFile) -> str:
        if self.ai_backend is None or len(text) <= self.cfg.AI_CLEANUP_MIN_CHARS:
            return text
        return await self.ai_backend.cleanup(text, get_file_type_description(upload))

    async def extract_document_content(self, upload: UploadedFile) -> str:
        raw = await self.extract_raw_document_content(upload)
        return await self._cleanup(raw, upload)

    async def process_uploaded_file(
        self,
        upload: UploadedFile,
        on_progress: ProgressCallback | None = None,
    ) -> DocumentContentBundle:
        def progress(value: int) -> None:
            if on_progress:
                on_progress(value)

        upload_id = str(uuid.uuid4())
        set_context(upload_id=upload_id, file_name=upload.name)
        progress(10)

        validate_upload_size(upload, self.cfg.MAX_UPLOAD_BYTES)
        progress(30)

        raw = await self.extract_raw(upload)
        progress(60)

        original = raw.text
        quality = assess_text(original, self.denylist)
        processed = await self._cleanup(original, upload)
        sanitized = sanitize_for_forms(processed)
        progress(80)

        metadata = DocumentMetadata(
            name=upload.name,
            size=upload.size,
            mime_type=upload.mime_type or "unknown",
            type_description=get_file_type_description(upload),
            extracted_at=datetime.now(timezone.utc),
            original_content_length=len(original),
            processed_content_length=len(processed),
            sanitized_content_length=len(sanitized),
            word_count=len(processed.split()),
            ai_cleanup_applied=processed != original,
            readable_ratio=quality.readable_ratio,
            corruption_level=quality.corruption_level,
            extraction_strategy=raw.pdf.strategy.value if raw.pdf else None,
            extraction_quality=round(raw.pdf.readable_ratio, 3) if raw.pdf else None,
        )

        logger.info(
            "document.processed",
            extra={
                "file_type": raw.file_type.value,
                "original_chars": metadata.original_content_length,
                "processed_chars": metadata.processed_content_length,
                "ai_cleanup_applied": metadata.ai_cleanup_applied,
                "readable_ratio": quality.readable_ratio,
                "corruption_level": quality.corruption_level,
                "extraction_strategy": metadata.extraction_strategy,
            },
        )
        progress(100)

        return DocumentContentBundle(
            original_content=original,
            processed_content=processed,
            sanitized_content=sanitized,
            file_type=raw.file_type.value,
            metadata=metadata,
        )
