import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request, UploadFile

from clinic_agenda.config import Settings
from clinic_agenda.dependencies import (
    get_current_user,
    get_parser,
    get_settings,
    limiter,
)
from clinic_agenda.exceptions import AgendaError, FileValidationError
from clinic_agenda.models.agenda import (
    AgendaRecord,
    AgendaResponse,
    AgendaUploadResponse,
    MessageRequest,
    MessageResponse,
    ParseTextRequest,
    SummaryMessageRequest,
)
from clinic_agenda.services.agenda_parser import AgendaParser
from clinic_agenda.services.messages import generate_message, generate_summary_message
from clinic_agenda.services.summary import build_summary
from clinic_agenda.services.text_extraction import TextExtractionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agenda", tags=["agenda"])

PDF_MAGIC_BYTES = b"%PDF-"
ALLOWED_MIME_TYPES = {"application/pdf"}
MAX_FILENAME_LENGTH = 200
SAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]")


def _sanitize_filename(filename: str) -> str:
    # Strip path components (e.g. ../../agenda.pdf -> agenda.pdf)
    name = filename.rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    name = SAFE_FILENAME_RE.sub("_", name)
    name = name[:MAX_FILENAME_LENGTH]
    return name or "agenda.pdf"


def _validate_pdf(content: bytes, max_size_mb: int) -> None:
    if len(content) > max_size_mb * 1024 * 1024:
        raise FileValidationError(
            f"File exceeds maximum size of {max_size_mb}MB"
        )
    if not content.startswith(PDF_MAGIC_BYTES):
        raise FileValidationError("File does not appear to be a valid PDF")


@router.post("/upload", response_model=AgendaUploadResponse)
@limiter.limit("10/minute")
def upload_agenda(
    request: Request,
    file: UploadFile,
    current_user: Annotated[str, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
    parser: Annotated[AgendaParser, Depends(get_parser)],
) -> AgendaUploadResponse:
    if file.content_type not in ALLOWED_MIME_TYPES:
        raise FileValidationError(
            f"Invalid file type: {file.content_type}. Only PDF files are accepted."
        )

    content = file.file.read()
    _validate_pdf(content, settings.max_file_size_mb)

    safe_filename = _sanitize_filename(file.filename or "agenda.pdf")
    start = time.monotonic()
    doc_id = uuid.uuid4().hex[:12]

    extractor: TextExtractionService | None = getattr(
        request.app.state, "text_extraction_service", None
    )
    if extractor is None:
        raise AgendaError("Text extraction is unavailable", status_code=503)

    text, total_pages = extractor.extract_text(content)
    agenda = parser.parse(text)
    summary = build_summary(agenda)
    elapsed = time.monotonic() - start
    logger.info(
        "Agenda %s: %s page(s), %s appointment(s)",
        doc_id,
        total_pages,
        summary.total_count,
    )

    firestore_svc = getattr(request.app.state, "firestore_service", None)
    if firestore_svc is not None:
        record = {
            "document_id": doc_id,
            "filename": safe_filename,
            "total_pages": total_pages,
            "full_text": text,
            "agenda": agenda.model_dump(),
            "summary": summary.model_dump(),
            "processing_time_seconds": round(elapsed, 3),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "uploaded_by": current_user,
        }
        firestore_svc.save_record(doc_id, record)

    return AgendaUploadResponse(
        document_id=doc_id,
        filename=safe_filename,
        total_pages=total_pages,
        agenda=agenda,
        summary=summary,
        processing_time_seconds=round(elapsed, 3),
    )


@router.post("/parse", response_model=AgendaResponse)
def parse_agenda_text(
    body: ParseTextRequest,
    current_user: Annotated[str, Depends(get_current_user)],
    parser: Annotated[AgendaParser, Depends(get_parser)],
) -> AgendaResponse:
    agenda = parser.parse(body.text)
    return AgendaResponse(agenda=agenda, summary=build_summary(agenda))


@router.post("/messages", response_model=MessageResponse)
def render_message(
    body: MessageRequest,
    current_user: Annotated[str, Depends(get_current_user)],
) -> MessageResponse:
    message = generate_message(
        body.appointment,
        body.message_type,
        prep_text=body.prep_text,
        signature=body.signature_name,
    )
    return MessageResponse(message=message)


@router.post("/summary-message", response_model=MessageResponse)
def render_summary_message(
    body: SummaryMessageRequest,
    current_user: Annotated[str, Depends(get_current_user)],
) -> MessageResponse:
    summary = build_summary(body.agenda)
    return MessageResponse(
        message=generate_summary_message(summary, signature=body.signature_name)
    )


@router.get("/{document_id}", response_model=AgendaRecord)
def get_agenda_record(
    request: Request,
    document_id: str,
    current_user: Annotated[str, Depends(get_current_user)],
) -> AgendaRecord:
    firestore_svc = getattr(request.app.state, "firestore_service", None)
    if firestore_svc is None:
        raise AgendaError("Firestore unavailable", status_code=503)

    record = firestore_svc.get_record(document_id)
    if record is None:
        raise AgendaError("Document not found", status_code=404)

    return AgendaRecord(**record)
