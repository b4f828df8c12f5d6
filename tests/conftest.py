from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from clinic_agenda.config import Settings
from clinic_agenda.dependencies import limiter
from clinic_agenda.main import create_app
from clinic_agenda.services.auth import hash_password

ADMIN_USER = {
    "username": "admin",
    "hashed_password": hash_password("changeme123"),
    "is_active": True,
}

AGENDA_TEXT = """\
Agenda do Dia - Relatório de Atendimentos
Dr. Orlando_Costa
Data: 25/11/2025
08:00 - 08:15 JOAO PEREIRA SILVA (14) 99887-7766 Unimed Confirmado
08:20
PEREIRA ADICIONAL
08:30 - 08:45 LIVRE
08:45 - 09:00 ANA CLARA SOUZA Retorno de Consulta Particular (14) 3235-1122 Agendado
Página 1 de 1
"""


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        jwt_secret_key="test-secret-key-for-testing-only",
        gcp_project_id="test-project",
        debug=True,
    )


@pytest.fixture()
def app(test_settings: Settings) -> TestClient:
    application = create_app(settings=test_settings)
    limiter.reset()

    # Replace services with mocks to avoid reading real files or Firestore
    mock_extractor = MagicMock()
    mock_extractor.extract_text.return_value = (AGENDA_TEXT, 1)

    mock_firestore = MagicMock()
    mock_firestore.save_record.return_value = None
    mock_firestore.get_record.return_value = None
    mock_firestore.get_user.side_effect = (
        lambda u: ADMIN_USER if u == "admin" else None
    )

    application.state.text_extraction_service = mock_extractor
    application.state.firestore_service = mock_firestore

    return TestClient(application)


@pytest.fixture()
def auth_headers(app: TestClient) -> dict[str, str]:
    response = app.post(
        "/auth/token",
        data={"username": "admin", "password": "changeme123"},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
