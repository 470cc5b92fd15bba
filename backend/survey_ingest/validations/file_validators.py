"""
file_validators.py
- Purpose: Centralized validation for uploads before any extraction runs.
- Design: Raise AppError with stable error codes for UI + logs.
"""

from fastapi import status as http_status

from survey_ingest.core import AppError, ErrorCode, ErrorReason
from survey_ingest.documents.uploads import UploadedFile

MAX_BYTES = 10 * 1024 * 1024  # 10MB


def validate_upload_size(upload: UploadedFile, max_bytes: int = MAX_BYTES) -> None:
    if upload.size > max_bytes:
        raise AppError(
            code=ErrorCode.FILE_TOO_LARGE,
            reason=ErrorReason.FILE_TOO_LARGE,
            status_code=http_status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            message=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
            details={"size": upload.size, "max_bytes": max_bytes},
        )
