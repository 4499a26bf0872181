"""HTTP front end for the model graph.

``create_app`` wires the validation and lookup routes around a single
``GraphQuery`` that the lifespan builds from the configured definition
directory. Interactive docs are only served when ``debug`` is on.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.middleware.security import RequestIDMiddleware, SecurityHeadersMiddleware
from src.api.routes import health, models
from src.api.version import API_VERSION
from src.core.config import get_settings
from src.intellisense.builder import load_graph
from src.intellisense.query import GraphQuery

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the model graph once and publish it on ``app.state``.

    A graph that fails to build is still published; routes that need it
    answer 503 until the service is restarted with usable definitions.
    """
    settings = get_settings()

    store = load_graph(
        settings.definitions_path,
        context_file_name=settings.context_file_name,
        constraint_file_name=settings.constraint_file_name,
        graph_file_name=settings.graph_file_name,
    )
    app.state.graph_query = GraphQuery(store)
    if store.initialized():
        stats = store.stats()
        logger.info(
            "Model graph loaded from %s (%d classes, versions %s)",
            settings.definitions_path,
            stats.class_count,
            stats.versions,
        )
    else:
        logger.warning("Model graph is not initialized; starting in degraded mode")

    yield

    logger.info("TwinLint shutting down")


def _error_body(request: Request, detail: str) -> dict[str, str]:
    return {"detail": detail, "request_id": getattr(request.state, "request_id", "unknown")}


def create_app() -> FastAPI:
    """Assemble the TwinLint application from current settings."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Validation and query service for Digital Twin model documents",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # -- Middleware ---
    # Starlette runs the last-added middleware first, so request IDs exist
    # before the header middleware and CORS see the request.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID", "Accept"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # -- Routes ---
    app.include_router(health.router)
    app.include_router(models.router)

    # -- Error Handlers ---
    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
        body = _error_body(request, str(exc))
        logger.warning("Rejected request [%s]: %s", body["request_id"], exc)
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        body = _error_body(request, "Internal server error")
        logger.exception("Unhandled error [%s]: %s", body["request_id"], exc)
        return JSONResponse(status_code=500, content=body)

    return app


app = create_app()
