"""Map exceptions raised during an export to JSON error responses.

Every error body has the shape ``{"error": {"code", "message", "request_id"}}``
plus ``details`` when the raising code supplied any. Unexpected exceptions are
logged with their type and text but answered with a fixed message.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bookexport.core.errors import AppError, ErrorDetails, GenerationAppError, ValidationAppError
from bookexport.core.logging import get_request_id

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "internal_server_error"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

# Checked in order; the first matching class wins
STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (GenerationAppError, 500),
    (ValidationAppError, 400),
)
DEFAULT_APP_ERROR_STATUS = 400


def status_for(exc: AppError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return DEFAULT_APP_ERROR_STATUS


def _error_response(
    status_code: int, code: str, message: str, details: ErrorDetails | None = None
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Answer an ``AppError`` with its own code, message and details."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "request_path": request.url.path,
            "has_details": bool(exc.details),
        },
    )
    return _error_response(status_code, exc.code, exc.message, exc.details)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_method": request.method,
            "request_path": request.url.path,
        },
    )
    return _error_response(500, INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE)


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
