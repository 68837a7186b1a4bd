"""Exception handlers rendering the common error envelope.

Every failure leaves the API as::

    {"success": false, "error": "<Name>", "message": "...", "path": "..."}

Request validation errors add ``details``.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ezhealth.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: Any,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build the error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            **extra,
            "path": str(request.url),
        },
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Business rule violations raised by services."""
    if exc.status_code >= 500:
        logger.warning(
            "app_exception",
            error=exc.__class__.__name__,
            message=exc.message,
            path=request.url.path,
        )
    return error_response(request, exc.status_code, exc.__class__.__name__, exc.message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Routing errors such as unknown paths or methods."""
    return error_response(
        request,
        exc.status_code,
        "HTTPException",
        exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Malformed bodies, path or query parameters."""
    return error_response(
        request,
        422,
        "ValidationError",
        "Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Anything unexpected.

    The traceback is logged; the client only receives a generic message.
    """
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalServerError",
        "An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install all handlers on the application."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)
