"""KYC Onboarding API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AppError → structured JSON responses (api/error_handlers.py)
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Request logging middleware added after CORS so it wraps every routed request
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import close_metamap_client
from app.api.error_handlers import register_error_handlers
from app.api.routes import health, onboarding, users, webhooks
from app.config import get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.observability import setup_logging
from app.infrastructure.request_logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("KYC Onboarding API started")
    yield
    await close_metamap_client()
    await close_db()
    logger.info("KYC Onboarding API shutting down")


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(
        title="KYC Onboarding API", version="1.0.0", lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(
        RequestLoggingMiddleware,
        skip_paths=settings.http_log_skip_paths,
        enabled=settings.http_log_enabled,
    )

    register_error_handlers(application)

    application.include_router(health.router)
    application.include_router(users.router)
    application.include_router(onboarding.router)
    application.include_router(webhooks.router)
    return application


app = create_app()
