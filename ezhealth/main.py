"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from ezhealth.api.v1.router import api_router
from ezhealth.config import settings
from ezhealth.core.payment_gateway import PaymentGateway
from ezhealth.core.redis_client import check_redis_connection, create_redis_client
from ezhealth.database import (
    check_database_connection,
    create_engine_from_settings,
    create_session_factory,
)
from ezhealth.middleware.error_handler import register_exception_handlers
from ezhealth.middleware.logging import LoggingMiddleware, configure_logging
from ezhealth.services.notification_service import NotificationService

configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the database engine, Redis client and payment gateway client at
    startup, exposes them on ``app.state`` and closes them at shutdown.
    """
    logger.info("application_startup", environment=settings.environment)

    engine = create_engine_from_settings(settings)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    if await check_database_connection(engine):
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    redis_client = create_redis_client(settings)
    app.state.redis = redis_client
    if check_redis_connection(redis_client):
        logger.info("redis_connected")
    else:
        logger.error("redis_connection_failed", note="Doctor directory will not be cached")

    app.state.payment_gateway = PaymentGateway.from_settings(settings)
    app.state.notification_service = NotificationService(settings)
    if not settings.email_enabled:
        logger.warning("email_disabled", note="Set SMTP_USERNAME to send appointment e-mails")

    yield

    logger.info("application_shutdown")

    await app.state.payment_gateway.aclose()
    logger.info("payment_gateway_closed")

    await engine.dispose()
    logger.info("database_connections_closed")

    redis_client.close()
    logger.info("redis_connection_closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Hospital appointment booking, payment and prescription API",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.api_v1_prefix)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Welcome message."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ezhealth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
