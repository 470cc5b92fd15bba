"""
errors.py
- Purpose: AppError used across the pipeline for consistent, user-facing errors.
- Pattern: raise AppError(...) in services; the HTTP handler converts it to JSON.
  `message` is a plain string intended for direct display.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import status as http_status

from survey_ingest.core.error_codes import ErrorCode
from survey_ingest.core.error_reasons import ErrorReason


@dataclass
class AppError(Exception):
    code: ErrorCode
    reason: str
    status_code: int = http_status.HTTP_400_BAD_REQUEST
    details: dict[str, Any] | None = None
    message: str | None = None  # Optional human-readable message

    def __str__(self) -> str:
        return self.message if self.message else str(self.reason)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": {
                "code": self.code,
                "reason": self.reason,
                "message": str(self),
            }
        }
        if self.details:
            payload["error"]["details"] = self.details
        return payload


# Convenience constructors
def unsupported_file(message: str, *, details: dict | None = None) -> AppError:
    return AppError(
        code=ErrorCode.UNSUPPORTED_FILE_TYPE,
        reason=ErrorReason.UNSUPPORTED_FILE,
        status_code=http_status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        message=message,
        details=details,
    )


def unprocessable(code: ErrorCode, reason: str, message: str, *, details: dict | None = None) -> AppError:
    return AppError(
        code=code,
        reason=reason,
        status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY,
        message=message,
        details=details,
    )
