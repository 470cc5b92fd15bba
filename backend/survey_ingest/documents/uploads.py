"""survey_ingest/documents/uploads.py

The uploaded file as every extractor sees it, plus MIME/extension helpers.
"""

from dataclasses import dataclass
from enum import Enum


class FileKind(str, Enum):
    TXT = "TXT"
    PDF = "PDF"
    DOCX = "DOCX"
    DOC = "DOC"
    UNKNOWN = "UNKNOWN"


MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MIME_DOC = "application/msword"
MIME_TEXT = "text/plain"

# Descriptions shown to users; broader than what we can dispatch
FILE_TYPE_DESCRIPTIONS: dict[str, str] = {
    MIME_PDF: "PDF",
    MIME_DOCX: "DOCX",
    MIME_DOC: "DOC",
    MIME_TEXT: "TXT",
    "text/rtf": "RTF",
    "application/vnd.oasis.opendocument.text": "ODT",
}

SUPPORTED_MIME_TYPES = (MIME_TEXT, MIME_PDF, MIME_DOCX, MIME_DOC)
SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx", ".doc")


@dataclass(frozen=True)
class UploadedFile:
    data: bytes
    name: str
    mime_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def lower_name(self) -> str:
        return (self.name or "").lower()

    @property
    def normalized_mime(self) -> str:
        return (self.mime_type or "").split(";")[0].strip().lower()


def file_kind(upload: UploadedFile) -> FileKind:
    """MIME type first, extension when the MIME type is absent or generic."""
    mime = upload.normalized_mime
    name = upload.lower_name

    if mime == MIME_TEXT or name.endswith(".txt"):
        return FileKind.TXT
    if mime == MIME_PDF or name.endswith(".pdf"):
        return FileKind.PDF
    if mime == MIME_DOCX or name.endswith(".docx"):
        return FileKind.DOCX
    if mime == MIME_DOC or name.endswith(".doc"):
        return FileKind.DOC
    return FileKind.UNKNOWN


def is_supported_file_type(upload: UploadedFile) -> bool:
    if upload.normalized_mime in SUPPORTED_MIME_TYPES:
        return True
    return upload.lower_name.endswith(SUPPORTED_EXTENSIONS)


def get_file_type_description(upload: UploadedFile) -> str:
    described = FILE_TYPE_DESCRIPTIONS.get(upload.normalized_mime)
    if described:
        return described
    kind = file_kind(upload)
    return "Unknown" if kind == FileKind.UNKNOWN else kind.value
