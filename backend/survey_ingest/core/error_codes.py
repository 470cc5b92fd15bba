# survey_ingest/core/error_codes.py
from enum import Enum

class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Upload
    FILE_MISSING = "FILE_MISSING"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    EMPTY_CONTENT = "EMPTY_CONTENT"

    # PDF
    EXTRACTION_FAILED = "EXTRACTION_FAILED"

    # Word documents
    DOCX_CORRUPTED = "DOCX_CORRUPTED"
    DOCX_PROTECTED = "DOCX_PROTECTED"
    DOCX_FAILED = "DOCX_FAILED"
    DOC_CONVERSION_REQUIRED = "DOC_CONVERSION_REQUIRED"
