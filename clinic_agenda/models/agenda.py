from enum import Enum

from pydantic import BaseModel, ConfigDict

# Print layout of the clinic schedule, left to right.
DEFAULT_COLUMNS = (
    "TIME",
    "PATIENT DESCRIPTION",
    "EVENT TYPE",
    "INSURANCE",
    "CONTACT",
    "STATUS",
)

FREE_SLOT_MARKER = "LIVRE"


class TextFragment(BaseModel):
    """One run of text anchored at (x, y), with y growing upward."""

    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float


class AgendaLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...] = DEFAULT_COLUMNS
    line_tolerance: float = 8.0
    header_scan_lines: int = 15
    name_max_tokens: int = 2


class AppointmentRecord(BaseModel):
    patient_name: str
    full_patient_name: str = ""
    time: str
    contact: str = ""
    status: str = "Agendado"
    doctor: str | None = None
    date: str | None = None
    procedure: str | None = None
    insurance: str | None = None

    @property
    def is_free_slot(self) -> bool:
        return FREE_SLOT_MARKER in self.patient_name.upper()


class ParsedAgenda(BaseModel):
    doctor: str = ""
    date: str = ""
    appointments: list[AppointmentRecord] = []
    free_slots: list[AppointmentRecord] = []


class AgendaSummary(BaseModel):
    """Aggregate view of one parsed agenda."""

    total_count: int
    confirmed_count: int
    pending_count: int
    first_time: str
    last_time: str
    doctor: str
    date: str
    free_slots_text: str
    first_visit_count: int = 0
    consultation_count: int = 0
    return_count: int = 0


class MessageType(str, Enum):
    CONFIRMATION = "confirmation"
    RESCHEDULE = "reschedule"
    PROCEDURE_CONFIRMATION = "procedure_confirmation"


class ParseTextRequest(BaseModel):
    text: str


class MessageRequest(BaseModel):
    appointment: AppointmentRecord
    message_type: MessageType = MessageType.CONFIRMATION
    prep_text: str = ""
    signature_name: str = ""


class SummaryMessageRequest(BaseModel):
    agenda: ParsedAgenda
    signature_name: str = ""


class MessageResponse(BaseModel):
    message: str


class AgendaResponse(BaseModel):
    agenda: ParsedAgenda
    summary: AgendaSummary


class AgendaUploadResponse(BaseModel):
    document_id: str
    filename: str
    total_pages: int
    agenda: ParsedAgenda
    summary: AgendaSummary
    processing_time_seconds: float


class AgendaRecord(BaseModel):
    """Full stored record returned by GET endpoint."""

    document_id: str
    filename: str
    total_pages: int
    agenda: ParsedAgenda
    summary: AgendaSummary
    processing_time_seconds: float
    created_at: str
    uploaded_by: str
