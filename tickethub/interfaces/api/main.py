"""
FastAPI Main Application - Search API entry point.

Run with: uvicorn tickethub.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tickethub import __version__
from tickethub.config import Settings, get_settings

from .deps import cleanup_services, init_services
from .middleware import (
    ErrorHandlerMiddleware,
    RequestContextMiddleware,
    SearchRateLimitMiddleware,
)
from .routes import health, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting TicketHub search API...")
    logger.info("  Database: %s", settings.db_path)

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down TicketHub search API...")
    await cleanup_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application (settings default to the environment)."""
    settings = settings or get_settings()

    app = FastAPI(
        title="TicketHub Search API",
        description="Full-text search over tickets and ticket comments",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - first added = innermost)
    app.add_middleware(
        SearchRateLimitMiddleware, requests_per_minute=settings.rate_limit_rpm
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:*")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api/search", tags=["Search"])

    return app


# Create app instance
app = create_app()
