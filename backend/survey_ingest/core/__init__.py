# survey_ingest/core/__init__.py
from survey_ingest.core.errors import AppError
from survey_ingest.core.error_codes import ErrorCode
from survey_ingest.core.error_reasons import ErrorReason

__all__ = ["AppError", "ErrorCode", "ErrorReason"]
