"""
Global error handling for the FastAPI application.

Catches MemorySketchError subclasses, request validation errors, and
unhandled exceptions, converting them into the ``{success: false, error}``
envelope the stage handlers promise.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from memsketch.core.exceptions import MemorySketchError

logger = logging.getLogger(__name__)


def _envelope(error: str, code: str, timestamp: str | None = None) -> dict:
    return {
        "success": False,
        "error": error,
        "code": code,
        "timestamp": timestamp or datetime.now(UTC).isoformat(),
    }


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers three handlers in priority order:
    1. ``MemorySketchError`` — domain errors with their own status code.
    2. ``RequestValidationError`` — malformed body/params (400).
    3. ``Exception`` — catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(MemorySketchError)
    async def memsketch_error_handler(_request: Request, exc: MemorySketchError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(exc.detail, exc.code, exc.timestamp),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content=_envelope(str(exc), "VALIDATION_ERROR"))

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler — prevents stack traces from leaking to clients."""
        logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=_envelope("Internal server error", "INTERNAL_ERROR"))
