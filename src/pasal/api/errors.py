"""Exception handlers — typed errors → JSON responses.

Learn: services raise PasalError subclasses and never build HTTP responses.
This module is the single place where an error becomes a status code and a
``{"detail": ..., "code": ...}`` body. 401 responses advertise the Bearer
scheme; 503 responses carry Retry-After because they are the only ones a
client should retry.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pasal.errors import PasalError, TransientError, UnauthorizedError

logger = structlog.get_logger()

RETRY_AFTER_SECONDS = 1


def error_response(exc: PasalError) -> JSONResponse:
    headers = {}
    if isinstance(exc, UnauthorizedError):
        headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, TransientError):
        headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PasalError)
    async def handle_pasal_error(request: Request, exc: PasalError):
        log_fn = logger.warning if exc.status_code >= 500 else logger.info
        log_fn(
            "request.failed",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            code=exc.code,
            detail=exc.message,
        )
        return error_response(exc)
