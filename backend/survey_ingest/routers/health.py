from fastapi import APIRouter, Depends

from survey_ingest.api.deps import get_ai_backend
from survey_ingest.llm.text_service import AiTextService

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health(ai: AiTextService | None = Depends(get_ai_backend)):
    return {"status": "ok", "ai_configured": ai is not None}
