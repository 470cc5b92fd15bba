"""
Request/upload context helpers.

We keep a small context (request_id, upload_id, file_name) in ContextVars.
The HTTP middleware and the document pipeline set these values so logs from
one upload are correlatable across detection, strategies and AI calls.

No external dependencies.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Any, Dict, Optional


_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_upload_id: ContextVar[Optional[str]] = ContextVar("upload_id", default=None)
_file_name: ContextVar[Optional[str]] = ContextVar("file_name", default=None)


def set_context(
    *,
    request_id: Optional[str] = None,
    upload_id: Optional[str] = None,
    file_name: Optional[str] = None,
) -> None:
    if request_id is not None:
        _request_id.set(request_id)
    if upload_id is not None:
        _upload_id.set(upload_id)
    if file_name is not None:
        _file_name.set(file_name)


def clear_context() -> None:
    _request_id.set(None)
    _upload_id.set(None)
    _file_name.set(None)


def get_context() -> Dict[str, Any]:
    ctx: Dict[str, Any] = {}
    rid = _request_id.get()
    uid = _upload_id.get()
    name = _file_name.get()

    if rid:
        ctx["request_id"] = rid
    if uid:
        ctx["upload_id"] = uid
    if name:
        ctx["file_name"] = name
    return ctx
