from functools import lru_cache

from survey_ingest.core.config import settings
from survey_ingest.llm.text_service import AiTextService, build_ai_backend
from survey_ingest.services.document_pipeline import DocumentPipeline


@lru_cache
def get_ai_backend() -> AiTextService | None:
    """
    Optional AI capability, built once per process.
    None when no provider key is configured; AI-dependent stages are skipped.
    """
    return build_ai_backend(settings)


def get_document_pipeline() -> DocumentPipeline:
    """
    Service dependency for document ingestion.
    Using Depends(get_document_pipeline) allows tests to swap in a pipeline
    with fake collaborators via app.dependency_overrides.
    """
    return DocumentPipeline(get_ai_backend(), cfg=settings)
