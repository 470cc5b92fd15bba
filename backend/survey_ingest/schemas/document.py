"""
document.py (schemas)
- Purpose: Response DTOs for document ingestion.
- Design: `original_content` is what was extracted, `processed_content` is what
  downstream generation should use, `sanitized_content` is the single-line form
  for form exports.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class DocumentMetadata(BaseModel):
    name: str
    size: int
    mime_type: str = "unknown"
    type_description: str
    extracted_at: datetime

    original_content_length: int
    processed_content_length: int
    sanitized_content_length: int
    word_count: int
    ai_cleanup_applied: bool = False

    # Quality of the extracted text before any AI cleanup
    readable_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    corruption_level: float = Field(default=0.0, ge=0.0, le=1.0)

    # PDF only: which strategy produced the text and its readable ratio
    extraction_strategy: str | None = None
    extraction_quality: float | None = Field(default=None, ge=0.0, le=1.0)


class DocumentContentBundle(BaseModel):
    original_content: str
    processed_content: str
    sanitized_content: str
    file_type: str
    metadata: DocumentMetadata


class RawContentResponse(BaseModel):
    content: str
    file_type: str
