"""
error_reasons.py
- Purpose: Human-friendly "reason" strings.
- Keep these stable; they may be surfaced in UI next to the message.
"""

from enum import Enum


class ErrorReason(str, Enum):
    UNKNOWN = "Unknown error"

    INVALID_INPUT = "Invalid input"
    FILE_TOO_LARGE = "File too large"
    UNSUPPORTED_FILE = "Unsupported file type"
    NO_READABLE_TEXT = "No readable text content"

    PDF_UNREADABLE = "Unable to extract text from PDF"
    DOCX_INVALID = "Invalid DOCX file"
    DOCX_PROTECTED = "Password-protected DOCX file"
    DOC_LEGACY_FORMAT = "Legacy DOC format"

    INTERNAL_ERROR = "Internal server error"
