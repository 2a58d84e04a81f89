"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, bearer auth, error
handlers, routers, and the health endpoint. The module-level ``app``
instance allows ``uvicorn memsketch.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from memsketch.api.middleware.auth import BearerAuthMiddleware
from memsketch.api.middleware.error_handler import register_error_handlers
from memsketch.api.routes import memories, pipeline
from memsketch.core.config import get_settings
from memsketch.core.models import HealthResponse
from memsketch.services.storage.database import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and create tables on startup; dispose the engine on shutdown."""
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await init_db()
    yield
    await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="Memory Sketches",
        description="Record a spoken memory; get back its transcript, scenes and sketches.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # -- Auth (inner) then CORS (outer, so preflight and 401s carry CORS headers) --
    settings = get_settings()
    app.add_middleware(BearerAuthMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1, no auth) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    app.include_router(memories.router, prefix="/api/v1")
    app.include_router(pipeline.router, prefix="/api/v1")

    return app


app = create_app()
