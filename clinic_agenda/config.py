from pydantic_settings import BaseSettings

from clinic_agenda.models.agenda import AgendaLayout


class Settings(BaseSettings):
    # JWT
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 30

    # Firestore
    gcp_project_id: str
    firestore_database: str = "(default)"

    # App
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]
    rate_limit: str = "10/minute"
    max_file_size_mb: int = 20

    # Schedule layout
    line_tolerance: float = 8.0
    header_scan_lines: int = 15
    name_max_tokens: int = 2

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def layout(self) -> AgendaLayout:
        return AgendaLayout(
            line_tolerance=self.line_tolerance,
            header_scan_lines=self.header_scan_lines,
            name_max_tokens=self.name_max_tokens,
        )
