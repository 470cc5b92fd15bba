"""
Central logging configuration.

Goals:
- One shared logging setup for the API and library use.
- JSON logs to stdout for aggregation; LOG_FORMAT=text for local reading.
- Every line carries request_id / upload_id / file_name when they are set, so
  one upload can be followed through detection, strategies and AI cleanup.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.config import dictConfig

from survey_ingest.core.config import Settings, settings as default_settings
from survey_ingest.core.request_context import get_context

# Anything on a bare LogRecord is plumbing; the rest came in through `extra=`
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {
        k: v
        for k, v in record.__dict__.items()
        if k not in _RESERVED_ATTRS and not k.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **get_context(),
        }

        for k, v in _extra_fields(record).items():
            if k in base:
                continue
            try:
                json.dumps(v)
                base[k] = v
            except (TypeError, ValueError):
                base[k] = str(v)

        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)

        return json.dumps(base, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """`<time> LEVEL logger msg key=value ...` with context first, then extras."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {**get_context(), **_extra_fields(record)}
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def configure_logging(cfg: Settings | None = None) -> None:
    """
    Call once at process startup.
    """
    cfg = cfg or default_settings
    level = cfg.LOG_LEVEL.upper()
    formatter = "text" if cfg.LOG_FORMAT.lower() == "text" else "json"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"()": JsonFormatter},
                "text": {"()": TextFormatter},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter,
                    "stream": sys.stdout,
                }
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
                "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
                "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
                # PDF libraries are chatty on damaged files
                "pdfminer": {"level": "WARNING"},
                "pypdf": {"level": "ERROR"},
                "httpx": {"level": "WARNING"},
            },
        }
    )
