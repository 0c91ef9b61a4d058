"""
Error taxonomy and global exception handlers.

User-correctable failures (bad fields, wrong file type, oversized upload,
malformed id) map to 400, a missing resume to 404 and storage faults to 500.
Every body carries ``success: false`` and a ``message``; 5xx bodies also carry
the underlying ``error`` text.

Usage:
    from intake.core.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
import traceback
from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from intake.core.config import settings

logger = logging.getLogger(__name__)


class IntakeError(Exception):
    """Base class for every failure surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(IntakeError):
    """Required fields missing or a submission shape not allowed."""

    status_code = 400

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class UnsupportedMediaType(IntakeError):
    status_code = 400


class PayloadTooLarge(IntakeError):
    status_code = 400


class InvalidId(IntakeError):
    status_code = 400


class NotFound(IntakeError):
    status_code = 404


class InfrastructureError(IntakeError):
    """Storage or database fault; never retried."""

    status_code = 500


class StorageWriteError(InfrastructureError):
    pass


class StorageReadError(InfrastructureError):
    pass


class PersistenceError(InfrastructureError):
    pass


def error_body(message: str, error: Optional[BaseException] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = str(error)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(IntakeError)
    async def intake_error_handler(request: Request, exc: IntakeError):
        if exc.status_code >= 500:
            logger.error(
                "Request failed on %s %s: %s",
                request.method,
                request.url.path,
                exc.message,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc.message, exc.__cause__ or exc),
            )

        logger.warning(
            "Request rejected on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = sorted(
            {str(err["loc"][-1]) for err in exc.errors() if err.get("loc")}
        )
        message = "Invalid request"
        if fields:
            message = f"Invalid request fields: {', '.join(fields)}"
        logger.warning(
            "Malformed request on %s %s: %s",
            request.method,
            request.url.path,
            message,
        )
        return JSONResponse(status_code=400, content=error_body(message))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        Logs the full traceback server-side. The error text is only echoed
        back in debug mode.
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        app_settings = getattr(request.app.state, "settings", settings)
        if app_settings.DEBUG:
            return JSONResponse(
                status_code=500,
                content={
                    **error_body("Internal Server Error", exc),
                    "error_type": type(exc).__name__,
                    "path": request.url.path,
                },
            )
        return JSONResponse(
            status_code=500,
            content=error_body(
                "An unexpected error occurred. Please try again later."
            ),
        )
