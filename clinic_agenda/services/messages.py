import re

from clinic_agenda.models.agenda import AgendaSummary, AppointmentRecord, MessageType
from clinic_agenda.services.summary import DATE_PLACEHOLDER, format_count

DEFAULT_SIGNATURE = "Atendimento Unimed"
DOCTOR_PLACEHOLDER = "Dr(a). [Nome]"

CLINIC = "Centro de Diagnóstico Unimed (CDU), 9º andar"
SCHEDULING_PHONE = "(14) 3235-3350"
SCHEDULING_WHATSAPP = "(14) 99648-4958"

_DOCTOR_PREFIX_RE = re.compile(r"^dra?\b\.?", re.IGNORECASE)

_DOCUMENTS_NOTICE = (
    "⚠️ Importante: Apresentar Documento com foto e Carteirinha da Unimed."
)
_CONTACT_NOTICE = (
    "Em caso de dúvidas ou necessidade de reagendar, entre em contato "
    "através da Central de Agendamento: "
    f"{SCHEDULING_PHONE} ou WhatsApp {SCHEDULING_WHATSAPP}."
)


def format_doctor(name: str | None) -> str:
    """Prefix a doctor name with Dr./Dra. unless it already has one."""
    name = (name or "").strip()
    if not name:
        return DOCTOR_PLACEHOLDER
    if _DOCTOR_PREFIX_RE.match(name):
        return name
    first_word = name.split()[0]
    prefix = "Dra." if first_word.lower().endswith("a") else "Dr."
    return f"{prefix} {name}"


def signature_name(user_name: str | None) -> str:
    """First two words of the user name, or the front-desk default."""
    parts = (user_name or "").split()
    return " ".join(parts[:2]) if parts else DEFAULT_SIGNATURE


def _prep_block(prep_text: str) -> str:
    if not prep_text.strip():
        return ""
    return f"\n📝 *Preparo Necessário:*\n{prep_text.strip()}\n"


def generate_message(
    record: AppointmentRecord,
    message_type: MessageType,
    prep_text: str = "",
    signature: str = "",
) -> str:
    doctor = format_doctor(record.doctor)
    date = record.date or DATE_PLACEHOLDER
    prep = _prep_block(prep_text)
    sign = f"Atenciosamente,\n{signature_name(signature)}"

    if message_type == MessageType.RESCHEDULE:
        return (
            f"Olá, {record.patient_name}, este contato refere-se à sua "
            f"consulta no {CLINIC}. Tentamos o contato telefônico, mas não "
            "conseguimos falar com você.\n\n"
            "Devido a um imprevisto na agenda do médico, sua consulta com "
            f"o(a) {doctor} precisou ser remarcada.\n\n"
            "✅ Novo Agendamento:\n"
            f"📅 Data: {date}\n"
            f"⏰ Hora: {record.time}{prep}\n"
            f"{_DOCUMENTS_NOTICE}\n\n"
            "❌ Caso não seja possível a nova data agendada, por favor, entre "
            "em contato através da Central de Agendamento:\n\n"
            f"📞 Telefone: {SCHEDULING_PHONE}\n"
            f"📱 WhatsApp: {SCHEDULING_WHATSAPP}\n\n"
            "Pedimos desculpas pelo transtorno e agradecemos a compreensão.\n\n"
            f"{sign}"
        )

    if message_type == MessageType.PROCEDURE_CONFIRMATION:
        opening = (
            f"Olá, {record.patient_name}, este contato é para confirmar seu "
            f"agendamento no {CLINIC} (Oftalmologia), referente ao "
            f"procedimento/Exame de *{record.procedure or '[Procedimento]'}*."
        )
    else:
        opening = (
            f"Olá, {record.patient_name}, este contato refere-se à sua "
            f"consulta no {CLINIC} ( Oftalmologia )."
        )

    return (
        f"{opening}\n\n"
        f"🩺 {doctor}\n"
        f"📅 Data: {date}\n"
        f"⏰ Hora: {record.time}{prep}\n"
        f"{_DOCUMENTS_NOTICE}\n\n"
        f"{_CONTACT_NOTICE}\n\n"
        "Podemos confirmar?\n\n"
        f"{sign}"
    )


def generate_summary_message(summary: AgendaSummary, signature: str = "") -> str:
    """Daily schedule digest sent to the doctor."""
    return (
        f'Olá DR. "{summary.doctor}" tudo bem!\n\n'
        f"Segue o resumo da sua agenda do dia {summary.date} até o momento:\n\n"
        f"📅 Período de atendimento: {summary.first_time} às {summary.last_time}\n"
        f"👥 Total de pacientes agendados: {format_count(summary.total_count)}\n\n"
        "🧾 Distribuição dos atendimentos:\n\n"
        f"{format_count(summary.first_visit_count)} - Primeira Consulta\n"
        f"{format_count(summary.consultation_count)} - Consulta / Segunda Consulta\n"
        f"{format_count(summary.return_count)} - Retorno\n\n"
        "📌 Status dos agendamentos:\n\n"
        f"{format_count(summary.confirmed_count)} - atendimentos confirmados\n"
        f"{format_count(summary.pending_count)} - atendimento agendado "
        "(pendente de confirmação)\n\n"
        "🕒 Horário livre:\n"
        f"{summary.free_slots_text}\n\n"
        "Obrigado,\n"
        f"{signature_name(signature)}"
    )
