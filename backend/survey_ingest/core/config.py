# survey_ingest/core/config.py
import os
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent

class Settings(BaseSettings):
    app_name: str = "SurveyIngest"
    env: str = "local"

    # "json" for aggregation, "text" for local reading
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # =========================
    # Uploads
    # =========================
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10MB

    # Extra characters treated as mojibake by the PDF quality checks.
    # Empty/None keeps the built-in denylist.
    PDF_CORRUPT_GLYPHS: str | None = None

    # =========================
    # LLM (text cleanup)
    # =========================
    LLM_PROVIDER: str = "gemini"
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Runtime controls
    LLM_TIMEOUT_SECONDS: int = 30
    LLM_MAX_RETRIES: int = 2
    LLM_MAX_OUTPUT_TOKENS: int = 8192
    LLM_TEMPERATURE: float = 0.2

    # Upper bound for one cleanup call including retries
    AI_CLEANUP_TIMEOUT_SECONDS: float = 90.0
    # Documents shorter than this skip the cleanup pass
    AI_CLEANUP_MIN_CHARS: int = 200

    # HTTP
    CORS_ALLOW_ORIGINS: str | None = None

    model_config = SettingsConfigDict(
        env_file=os.path.join(PROJECT_ROOT, ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
