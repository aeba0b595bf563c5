"""
Error rendering.

Every AdminGateError becomes ``{"error": code, "message": ...}`` with the
status the error class declares. Middleware and exception handlers share
``error_response`` so the body shape never diverges.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from admingate.core.errors import AdminGateError

logger = structlog.get_logger()


def error_response(exc: AdminGateError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    @app.exception_handler(AdminGateError)
    async def admingate_error_handler(request: Request, exc: AdminGateError):
        if exc.status_code >= 500:
            logger.error("request_failed", error=exc.code, message=exc.message)
        return error_response(exc)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Invalid query options (unknown order or select field)."""
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_argument", "message": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error")
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": str(exc) if debug else "An error occurred",
            },
        )
