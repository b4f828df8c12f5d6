import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from clinic_agenda.config import Settings
from clinic_agenda.dependencies import limiter
from clinic_agenda.exceptions import AgendaError, agenda_error_handler
from clinic_agenda.routers import agenda, auth, health
from clinic_agenda.services.firestore import FirestoreService
from clinic_agenda.services.text_extraction import TextExtractionService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        # Only create real services if not already set (tests inject mocks)
        if not hasattr(app.state, "text_extraction_service"):
            app.state.text_extraction_service = TextExtractionService(
                line_tolerance=settings.line_tolerance,
            )
        if not hasattr(app.state, "firestore_service"):
            try:
                app.state.firestore_service = FirestoreService(
                    project_id=settings.gcp_project_id,
                    database=settings.firestore_database,
                )
            except Exception as exc:
                logger.warning("Firestore unavailable: %s", exc)
                app.state.firestore_service = None
        yield

    application = FastAPI(
        title="Clinic Agenda API",
        description="Extract appointments from printed clinic schedule PDFs",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_exception_handler(AgendaError, agenda_error_handler)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health.router)
    application.include_router(auth.router)
    application.include_router(agenda.router)

    return application


def _create_default_app() -> FastAPI:
    """Create app with settings from environment. Used by uvicorn."""
    try:
        return create_app()
    except Exception:
        # Without env vars, return a placeholder.
        # Tests use create_app(settings=...) directly.
        return FastAPI()


app = _create_default_app()
