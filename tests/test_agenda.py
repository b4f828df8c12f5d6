from io import BytesIO
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from clinic_agenda.exceptions import ExtractionError

PDF_CONTENT = b"%PDF-1.4 fake agenda"


def _upload(app: TestClient, headers: dict[str, str], name: str = "agenda.pdf"):
    return app.post(
        "/agenda/upload",
        headers=headers,
        files={"file": (name, BytesIO(PDF_CONTENT), "application/pdf")},
    )


def test_upload_requires_auth(app: TestClient) -> None:
    response = app.post(
        "/agenda/upload",
        files={"file": ("agenda.pdf", b"fake", "application/pdf")},
    )
    assert response.status_code == 401


def test_upload_rejects_non_pdf(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    response = app.post(
        "/agenda/upload",
        headers=auth_headers,
        files={"file": ("agenda.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 422
    assert "Invalid file type" in response.json()["detail"]


def test_upload_rejects_invalid_pdf_bytes(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    response = app.post(
        "/agenda/upload",
        headers=auth_headers,
        files={"file": ("agenda.pdf", b"not a real pdf", "application/pdf")},
    )
    assert response.status_code == 422
    assert "valid PDF" in response.json()["detail"]


def test_upload_success(app: TestClient, auth_headers: dict[str, str]) -> None:
    response = _upload(app, auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["filename"] == "agenda.pdf"
    assert body["total_pages"] == 1
    assert "full_text" not in body

    agenda = body["agenda"]
    assert agenda["doctor"] == "Orlando Costa"
    assert agenda["date"] == "25/11/2025"
    assert [a["patient_name"] for a in agenda["appointments"]] == [
        "JOAO PEREIRA",
        "ANA CLARA",
    ]
    first = agenda["appointments"][0]
    assert first["full_patient_name"] == "JOAO PEREIRA SILVA PEREIRA ADICIONAL"
    assert first["contact"] == "(14) 99887-7766"
    assert first["insurance"] == "Unimed"
    assert agenda["appointments"][1]["procedure"] == "Retorno de Consulta"
    assert [s["time"] for s in agenda["free_slots"]] == ["08:30"]

    summary = body["summary"]
    assert summary["total_count"] == 2
    assert summary["confirmed_count"] == 1
    assert summary["pending_count"] == 1
    assert summary["first_time"] == "08:00"
    assert summary["last_time"] == "08:45"
    assert summary["free_slots_text"] == "08:30"


def test_upload_extraction_failure(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    mock_extractor: MagicMock = app.app.state.text_extraction_service
    mock_extractor.extract_text.side_effect = ExtractionError("broken xref")

    response = _upload(app, auth_headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "Falha na leitura do PDF: broken xref"


def test_upload_empty_schedule_is_not_an_error(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    mock_extractor: MagicMock = app.app.state.text_extraction_service
    mock_extractor.extract_text.return_value = ("Agenda do Dia\n", 1)

    response = _upload(app, auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["agenda"]["appointments"] == []
    assert body["summary"]["total_count"] == 0


def test_upload_sanitizes_filename(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    response = _upload(app, auth_headers, name="../../etc/agenda dia.pdf")
    assert response.status_code == 200
    filename = response.json()["filename"]
    assert "/" not in filename
    assert ".." not in filename


def test_upload_saves_to_firestore(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    mock_firestore: MagicMock = app.app.state.firestore_service

    response = _upload(app, auth_headers)
    assert response.status_code == 200
    mock_firestore.save_record.assert_called_once()
    saved = mock_firestore.save_record.call_args[0][1]
    assert saved["filename"] == "agenda.pdf"
    assert saved["uploaded_by"] == "admin"
    assert "full_text" in saved
    assert saved["summary"]["total_count"] == 2


def test_upload_without_extractor(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    app.app.state.text_extraction_service = None
    response = _upload(app, auth_headers)
    assert response.status_code == 503


def test_parse_text(app: TestClient, auth_headers: dict[str, str]) -> None:
    response = app.post(
        "/agenda/parse",
        headers=auth_headers,
        json={"text": "09:00 - 09:15 MARIA SILVA Confirmado\n09:15 SILVA CONTINUED\n"},
    )
    assert response.status_code == 200
    body = response.json()
    appointments = body["agenda"]["appointments"]
    assert len(appointments) == 1
    assert appointments[0]["status"] == "Confirmado"
    assert appointments[0]["full_patient_name"] == "MARIA SILVA SILVA CONTINUED"
    assert body["summary"]["doctor"] == "[Médico]"


def test_render_message(app: TestClient, auth_headers: dict[str, str]) -> None:
    response = app.post(
        "/agenda/messages",
        headers=auth_headers,
        json={
            "appointment": {"patient_name": "RITA MELO", "time": "09:00"},
            "message_type": "reschedule",
            "signature_name": "Ana Paula Ferreira",
        },
    )
    assert response.status_code == 200
    message = response.json()["message"]
    assert message.startswith("Olá, RITA MELO,")
    assert message.endswith("Ana Paula")


def test_render_summary_message(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    response = app.post(
        "/agenda/summary-message",
        headers=auth_headers,
        json={
            "agenda": {
                "doctor": "Orlando Costa",
                "date": "25/11/2025",
                "appointments": [
                    {"patient_name": "RITA MELO", "time": "09:00", "status": "Confirmado"}
                ],
                "free_slots": [],
            }
        },
    )
    assert response.status_code == 200
    message = response.json()["message"]
    assert "Total de pacientes agendados: 01" in message
    assert "Nenhum horário livre encontrado." in message


def test_get_agenda_record_success(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    mock_firestore: MagicMock = app.app.state.firestore_service
    mock_firestore.get_record.return_value = {
        "document_id": "abc123",
        "filename": "agenda.pdf",
        "total_pages": 1,
        "full_text": "08:00 - 08:15 RITA MELO\n",
        "agenda": {
            "doctor": "",
            "date": "",
            "appointments": [{"patient_name": "RITA MELO", "time": "08:00"}],
            "free_slots": [],
        },
        "summary": {
            "total_count": 1,
            "confirmed_count": 0,
            "pending_count": 1,
            "first_time": "08:00",
            "last_time": "08:00",
            "doctor": "[Médico]",
            "date": "[Data]",
            "free_slots_text": "Nenhum horário livre encontrado.",
        },
        "processing_time_seconds": 0.2,
        "created_at": "2025-11-25T10:00:00+00:00",
        "uploaded_by": "admin",
    }

    response = app.get("/agenda/abc123", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["document_id"] == "abc123"
    assert body["agenda"]["appointments"][0]["patient_name"] == "RITA MELO"
    assert body["uploaded_by"] == "admin"


def test_get_agenda_record_not_found(
    app: TestClient, auth_headers: dict[str, str]
) -> None:
    response = app.get("/agenda/nonexistent", headers=auth_headers)
    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


def test_get_agenda_record_requires_auth(app: TestClient) -> None:
    response = app.get("/agenda/abc123")
    assert response.status_code == 401
