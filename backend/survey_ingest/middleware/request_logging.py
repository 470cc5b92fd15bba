from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from survey_ingest.core.request_context import clear_context, set_context


logger = logging.getLogger("survey_ingest.http")

# PDF uploads that fall through to AI recovery routinely take seconds
SLOW_REQUEST_MS = 15_000
QUIET_PATHS = frozenset({"/api/health"})


def response_level(path: str, status_code: int, duration_ms: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400 or duration_ms >= SLOW_REQUEST_MS:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, logs the upload size going in and the outcome coming out."""

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        set_context(request_id=rid)
        path = request.url.path

        t0 = time.perf_counter()
        try:
            logger.log(
                logging.DEBUG if path in QUIET_PATHS else logging.INFO,
                "http.request",
                extra={
                    "method": request.method,
                    "path": path,
                    "content_length": request.headers.get("content-length"),
                    "content_type": request.headers.get("content-type"),
                },
            )
            response: Response = await call_next(request)

            duration_ms = int((time.perf_counter() - t0) * 1000)
            logger.log(
                response_level(path, response.status_code, duration_ms),
                "http.response",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "slow": duration_ms >= SLOW_REQUEST_MS,
                },
            )
            response.headers["x-request-id"] = rid
            return response
        finally:
            # upload_id / file_name are set further down by the pipeline
            clear_context()
