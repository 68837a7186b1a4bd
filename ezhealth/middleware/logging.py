"""Structured logging setup and request logging middleware."""

import logging
import sys
import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.typing import Processor

from ezhealth.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Probes and scrapes are too frequent to be worth a log line each
QUIET_PATHS = frozenset(
    {"/metrics", f"{settings.api_v1_prefix}/health", f"{settings.api_v1_prefix}/ping"}
)


def configure_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Route structlog and stdlib logging through one renderer.

    Uvicorn, SQLAlchemy and Alembic log through the stdlib; their records get
    the same timestamp, level and request context as application events.

    Args:
        log_level: Level name, defaults to LOG_LEVEL
        log_format: ``json`` or ``console``, defaults to LOG_FORMAT
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    renderer: Processor
    if (log_format or settings.log_format) == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once on the way in and once on the way out.

    A request id (taken from ``X-Request-ID`` or generated) is bound into the
    structlog context for the whole request and echoed back in the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        logger = structlog.get_logger("ezhealth.request")
        path = request.url.path
        quiet = path in QUIET_PATHS

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        started = time.perf_counter()
        if not quiet:
            logger.info(
                "request_started",
                client=request.client.host if request.client else None,
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration=time.perf_counter() - started,
            )
            raise

        duration = time.perf_counter() - started
        if not quiet or response.status_code >= 500:
            log = logger.warning if response.status_code >= 500 else logger.info
            log("request_completed", status_code=response.status_code, duration=duration)

        response.headers["X-Process-Time"] = f"{duration:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
