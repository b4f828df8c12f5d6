import logging
import re
import unicodedata
from dataclasses import dataclass, field

from clinic_agenda.models.agenda import (
    DEFAULT_COLUMNS,
    FREE_SLOT_MARKER,
    AgendaLayout,
    AppointmentRecord,
    ParsedAgenda,
)
from clinic_agenda.services.keywords import (
    FIELD_KEYWORDS,
    INSURANCE,
    PROCEDURE,
    STATUS_KEYWORDS,
    contains_keyword,
    equals_keyword,
    first_of,
    strip_keywords,
)

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "Agendado"

# "08:00 - 08:15" or "08:00 -": the only shape that opens a new appointment
_TIME_RANGE_RE = re.compile(r"(\d{2}:\d{2})\s*[-–]\s*(?:\d{2}:\d{2})?")

# Wrapped rows repeat the slot end time, without a dash, before the name rest
_LEADING_TIME_RE = re.compile(r"^\s*\d{2}:\d{2}(?!\d)\s*")

_DATE_RE = re.compile(r"(\d{2}/\d{2}/\d{4})")

_DOCTOR_RE = re.compile(
    r"(?<!\w)(?:Dra?\.[:\s]*|(?:M[ée]dic[oa]|Prestador)[:\s]+)"
    r"([A-Za-zÀ-ÿ][A-Za-zÀ-ÿ\s._]*)",
    re.IGNORECASE,
)

# Optional (DD) area code, optional mobile 9, then 4+4 digits
_PHONE_RE = re.compile(r"(?:\(?\d{2}\)?\s?)?9?\d{4}[-.\s]?\d{4}")

_DASH_RE = re.compile(r"[-–—]")
_DIGITS_RE = re.compile(r"\d+")
_EDGE_NON_LETTERS_RE = re.compile(r"^[\W\d_]+|[\W\d_]+$")
_PP_RE = re.compile(r"^PP\s+|\s+PP$")

# Rows carrying one of these are page furniture, not appointments
NOISE_MARKERS = (
    "bloqueio",
    "agenda do dia",
    "relatório",
    "relatorio",
    "página",
    "pagina",
    "impresso em",
    "emissão",
    "emissao",
    "total de",
    "totais",
    "quantidade",
)

_CONTINUATION_NOISE_RE = re.compile(
    r"P[áa]gina|Impresso|Emiss[ãa]o|Relat[óo]rio"
    r"|(?<!\w)Dra?\.|(?<!\w)M[ée]dic[oa](?!\w)|Prestador"
    r"|Data\s*:|\d{2}/\d{2}/\d{4}",
    re.IGNORECASE,
)


@dataclass
class ParserState:
    """Mutable state of one parse pass."""

    doctor: str = ""
    date: str = ""
    records: list[AppointmentRecord] = field(default_factory=list)
    # Record that continuation lines extend; None when nothing can be extended
    current: AppointmentRecord | None = None


def scan_header(lines: list[str]) -> tuple[str, str]:
    """Find the document doctor and date in the schedule header.

    Returns:
        Tuple of (doctor, date), each empty when not found.
    """
    doctor = ""
    date = ""
    for line in lines:
        if not date:
            m = _DATE_RE.search(line)
            if m:
                date = m.group(1)
        if not doctor:
            m = _DOCTOR_RE.search(line)
            if m:
                doctor = " ".join(m.group(1).replace("_", " ").split())
                doctor = doctor.rstrip(". ")
    return doctor, date


def clean_name(text: str) -> str:
    """Reduce leftover row text to the patient name."""
    text = _DASH_RE.sub(" ", text)
    text = _DIGITS_RE.sub(" ", text)
    text = " ".join(text.split())
    text = _EDGE_NON_LETTERS_RE.sub("", text)
    text = _PP_RE.sub("", text)
    return text.strip()


def truncate_name(name: str, max_tokens: int = 2) -> str:
    return " ".join(name.split()[:max_tokens])


def extract_phones(text: str) -> tuple[str, list[str]]:
    phones = [p.strip() for p in _PHONE_RE.findall(text)]
    if not phones:
        return text, phones
    return _PHONE_RE.sub(" ", text), phones


def is_free_slot_name(name: str) -> bool:
    return FREE_SLOT_MARKER in name.upper()


def _is_noise(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in NOISE_MARKERS)


class AgendaParser:
    """Extract appointment records from reconstructed schedule text.

    ``layout.columns`` declares the row layout. Field extraction follows the
    printed template order, ``DEFAULT_COLUMNS``, and any other declared
    order is rejected up front.
    """

    def __init__(self, layout: AgendaLayout | None = None):
        self.layout = layout or AgendaLayout()
        if self.layout.columns != DEFAULT_COLUMNS:
            raise ValueError(
                "Unsupported column layout: "
                + " | ".join(self.layout.columns)
            )

    def parse(self, text: str) -> ParsedAgenda:
        # Normalize so decomposed accents match the keyword tables.
        text = unicodedata.normalize("NFC", text)
        lines = text.splitlines()

        doctor, date = scan_header(lines[: self.layout.header_scan_lines])
        state = ParserState(doctor=doctor, date=date)

        for line in lines:
            match = _TIME_RANGE_RE.search(line)
            if match:
                self._start_record(line, match, state)
            else:
                self._extend_record(line, state)

        return self._finalize(state)

    def _start_record(
        self, line: str, match: re.Match[str], state: ParserState
    ) -> None:
        if _is_noise(line):
            logger.debug("Skipping noise row: %s", line)
            return

        time = match.group(1)
        remaining = f"{line[: match.start()]} {line[match.end():]}"
        remaining = remaining.strip().lstrip("-–").strip()

        remaining, statuses = strip_keywords(remaining, STATUS_KEYWORDS)
        status = statuses[0].text.title() if statuses else DEFAULT_STATUS

        remaining, phones = extract_phones(remaining)

        remaining, fields = strip_keywords(remaining, FIELD_KEYWORDS)

        name = clean_name(remaining)
        free_slot = is_free_slot_name(name)
        if len(name) <= 2 and not free_slot:
            logger.debug("Skipping row without patient name: %s", line)
            return

        record = AppointmentRecord(
            patient_name=name,
            full_patient_name=name,
            time=time,
            contact=" / ".join(phones),
            status=status,
            doctor=state.doctor,
            date=state.date,
            procedure=first_of(fields, PROCEDURE),
            insurance=first_of(fields, INSURANCE),
        )
        state.records.append(record)
        # Free slots are closed as soon as they are read.
        state.current = None if free_slot else record

    def _extend_record(self, line: str, state: ParserState) -> None:
        current = state.current
        if current is None or not line.strip():
            return
        if _CONTINUATION_NOISE_RE.search(line):
            return

        text = _LEADING_TIME_RE.sub("", line)
        # Junk terms match as whole words, so "CAMILA" is not read as "Amil".
        if contains_keyword(text, FIELD_KEYWORDS):
            logger.debug("Skipping metadata line: %s", line)
            return

        text, _ = extract_phones(text)
        text, _ = strip_keywords(text, STATUS_KEYWORDS)
        text = clean_name(text)
        if len(text) > 1 and any(c.isalpha() for c in text):
            current.patient_name = f"{current.patient_name} {text}"

    def _finalize(self, state: ParserState) -> ParsedAgenda:
        appointments: list[AppointmentRecord] = []
        free_slots: list[AppointmentRecord] = []

        for record in state.records:
            record.full_patient_name = record.patient_name
            if record.is_free_slot:
                free_slots.append(record)
                continue
            name = record.patient_name
            if len(name) <= 2 or equals_keyword(name, FIELD_KEYWORDS):
                continue
            record.patient_name = truncate_name(
                name, self.layout.name_max_tokens
            )
            appointments.append(record)

        logger.info(
            "Parsed %s appointment(s) and %s free slot(s)",
            len(appointments),
            len(free_slots),
        )
        return ParsedAgenda(
            doctor=state.doctor,
            date=state.date,
            appointments=appointments,
            free_slots=free_slots,
        )
