from clinic_agenda.models.agenda import AgendaSummary, ParsedAgenda

DOCTOR_PLACEHOLDER = "[Médico]"
DATE_PLACEHOLDER = "[Data]"
NO_FREE_SLOTS_MESSAGE = "Nenhum horário livre encontrado."
DEFAULT_TIME = "00:00"


def format_count(n: int) -> str:
    """Render counts below 10 with a leading zero ("07")."""
    return f"0{n}" if 0 <= n < 10 else str(n)


def _procedure(value: str | None) -> str:
    return (value or "").lower()


def build_summary(parsed: ParsedAgenda) -> AgendaSummary:
    """Fold a parsed agenda into its daily totals.

    Times come from list order, which already follows the printed schedule.
    """
    appointments = parsed.appointments
    total = len(appointments)
    confirmed = sum(
        1 for a in appointments if "confirmado" in a.status.lower()
    )
    procedures = [_procedure(a.procedure) for a in appointments]

    free_times = [slot.time for slot in parsed.free_slots]

    return AgendaSummary(
        total_count=total,
        confirmed_count=confirmed,
        pending_count=total - confirmed,
        first_time=appointments[0].time if appointments else DEFAULT_TIME,
        last_time=appointments[-1].time if appointments else DEFAULT_TIME,
        doctor=parsed.doctor or DOCTOR_PLACEHOLDER,
        date=parsed.date or DATE_PLACEHOLDER,
        free_slots_text="\n".join(free_times) if free_times else NO_FREE_SLOTS_MESSAGE,
        first_visit_count=sum(1 for p in procedures if "primeira" in p),
        consultation_count=sum(
            1 for p in procedures if "consulta" in p and "primeira" not in p
        ),
        return_count=sum(1 for p in procedures if "retorno" in p),
    )
