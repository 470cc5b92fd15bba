"""
documents.py
- Purpose: API routes for turning uploaded documents into text.
- Design: Keep router thin. Delegate extraction to DocumentPipeline.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from survey_ingest.api.deps import get_document_pipeline
from survey_ingest.core import AppError, ErrorCode, ErrorReason
from survey_ingest.documents.uploads import UploadedFile
from survey_ingest.schemas.document import DocumentContentBundle, RawContentResponse
from survey_ingest.services.document_pipeline import DocumentPipeline

router = APIRouter(prefix="/api/documents", tags=["Documents"])


async def _read_upload(file: UploadFile) -> UploadedFile:
    try:
        data = await file.read()
    except Exception as e:
        raise AppError(
            code=ErrorCode.VALIDATION_ERROR,
            reason=ErrorReason.INVALID_INPUT,
            message="Failed to read uploaded file",
            status_code=400,
        ) from e
    return UploadedFile(data=data, name=file.filename or "upload", mime_type=file.content_type)


@router.post("", response_model=DocumentContentBundle)
async def process_document(
    file: UploadFile = File(...),
    pipeline: DocumentPipeline = Depends(get_document_pipeline),
):
    upload = await _read_upload(file)
    return await pipeline.process_uploaded_file(upload)


@router.post("/raw", response_model=RawContentResponse)
async def extract_raw_document(
    file: UploadFile = File(...),
    pipeline: DocumentPipeline = Depends(get_document_pipeline),
):
    """Extraction only, no AI cleanup. Used for previews."""
    upload = await _read_upload(file)
    raw = await pipeline.extract_raw(upload)
    return RawContentResponse(content=raw.text, file_type=raw.file_type.value)
