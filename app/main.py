"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.database import check_connection, dispose_engine, init_schema
from app.core.exceptions import register_exception_handlers
from app.core.health import router as health_router
from app.core.logging import configure_logging, get_logger
from app.core.middleware import BodySizeLimitMiddleware, RequestIdMiddleware
from app.features.batches.routes import router as batches_router
from app.features.ingest.routes import router as ingest_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Bootstrap the schema on startup and release the pool on shutdown.

    A database that is down at startup does not stop the server; requests
    report 503 until it comes back.
    """
    settings = get_settings()
    configure_logging()
    logger.info(
        "app.startup_started",
        app_name=settings.app_name,
        app_env=settings.app_env,
        port=settings.api_port,
    )

    schema_ready = await init_schema()
    database_ready = schema_ready and await check_connection()
    if database_ready:
        logger.info("app.startup_completed")
    else:
        logger.warning("app.startup_degraded", schema_ready=schema_ready)

    yield

    await dispose_engine()
    logger.info("app.shutdown_completed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Stores spreadsheet uploads as ordered, retrievable row batches",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Last added runs first: request id, then size check, then CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.ingest_max_body_bytes)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(ingest_router)
    app.include_router(batches_router)

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on API_HOST:API_PORT."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
