from fastapi import Request
from fastapi.responses import JSONResponse


class AgendaError(Exception):
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class FileValidationError(AgendaError):
    def __init__(self, message: str):
        super().__init__(message=message, status_code=422)


class ExtractionError(AgendaError):
    """The PDF could not be read into positioned text."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Falha na leitura do PDF: {reason}", status_code=422
        )


class FirestoreError(AgendaError):
    def __init__(self, message: str):
        super().__init__(message=message, status_code=502)


async def agenda_error_handler(
    request: Request, exc: AgendaError
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )
