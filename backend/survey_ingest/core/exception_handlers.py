"""
exception_handlers.py
- Purpose: Every failure leaves the API as `{"error": {"code", "reason", "message"}}`.
- AppError carries its own status/message. Request validation errors (e.g. a
  multipart body without `file`) and unexpected exceptions are mapped here.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from survey_ingest.core import AppError, ErrorCode, ErrorReason
from survey_ingest.core.request_context import get_context

logger = logging.getLogger("survey_ingest.exceptions")


def _with_request_id(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    rid = get_context().get("request_id") or request.headers.get("x-request-id")
    if rid:
        payload["error"]["request_id"] = rid
    return payload


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "app_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "code": exc.code,
            "reason": exc.reason,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=_with_request_id(exc.to_dict(), request))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    missing_file = any(e.get("type") == "missing" and "file" in e.get("loc", ()) for e in errors)

    err = AppError(
        code=ErrorCode.FILE_MISSING if missing_file else ErrorCode.VALIDATION_ERROR,
        reason=ErrorReason.INVALID_INPUT,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="No file uploaded. Send the document as multipart field 'file'."
        if missing_file
        else "Invalid request.",
        details={"fields": [".".join(str(p) for p in e.get("loc", ())) for e in errors]},
    )
    return await app_error_handler(request, err)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        extra={"path": request.url.path, "method": request.method},
    )
    payload = {
        "error": {
            "code": ErrorCode.INTERNAL_ERROR,
            "reason": ErrorReason.INTERNAL_ERROR,
            "message": "Something went wrong while processing the document.",
        }
    }
    return JSONResponse(status_code=500, content=_with_request_id(payload, request))
