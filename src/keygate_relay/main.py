# src/keygate_relay/main.py
"""Main entry point for the keygate relay."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from keygate_relay.api.v1 import (
    callback_router,
    links_router,
    stats_router,
    status_router,
    system_router,
)
from keygate_relay.core.logging import configure_logging
from keygate_relay.core.security import CallbackAuthError
from keygate_relay.core.settings import Settings, settings as default_settings
from keygate_relay.services.errors import StorageError, ValidationError
from keygate_relay.services.state_store import StateStore
from keygate_relay.services.tracker import CompletionTracker

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> StateStore:
    """Create the state store described by ``settings``."""
    return StateStore(
        settings.database_url,
        echo=settings.sql_debug,
        auto_create=settings.auto_create_tables,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": {"field": exc.field, "message": exc.message}},
        )

    @app.exception_handler(CallbackAuthError)
    async def _callback_auth_error(request: Request, exc: CallbackAuthError) -> JSONResponse:
        logger.warning(
            "Rejected callback",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": "Invalid callback token"},
        )

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(
            "Storage failure",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage temporarily unavailable"},
        )


def create_app(
    settings: Settings | None = None,
    store: StateStore | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the environment.
        store: Pre-built state store, mainly for tests. When omitted one is
            created from ``settings.database_url``.

    Returns:
        Application whose lifespan opens the store at startup and closes it
        at shutdown.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        state_store = store or build_store(settings)
        state_store.open()
        app.state.tracker = CompletionTracker(state_store)
        logger.info("Keygate relay started")
        try:
            yield
        finally:
            app.state.tracker = None
            state_store.close()

    app = FastAPI(
        title=settings.app_name,
        description="Ad-unlock callback relay",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tracker = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(links_router, prefix="/api/v1")
    app.include_router(callback_router, prefix="/api/v1")
    app.include_router(status_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "description": "Ad-unlock callback relay",
            "docs": "/docs",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the default application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "keygate_relay.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.debug,
    )


if __name__ == "__main__":
    run()
