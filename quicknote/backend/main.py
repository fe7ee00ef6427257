"""
FastAPI Application Entry Point.

This is the main entry point for the QuickNote backend. The lifespan owns
the note store: it creates the Database, creates tables and disposes of
the engine on shutdown. Scheduled sweeps run in the Taskiq scheduler
process, not here.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quicknote.backend.api import health
from quicknote.backend.api.v1 import router as api_v1_router
from quicknote.backend.core.config import get_app_config
from quicknote.backend.core.database import Database
from quicknote.backend.core.exception_handlers import register_exception_handlers
from quicknote.backend.core.logging import get_logger, setup_logging
from quicknote.backend.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level)

    database: Database | None = getattr(app.state, "database", None)
    owns_database = database is None
    if database is None:
        database = Database.from_config()
        app.state.database = database
    await database.create_tables()

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
            "collect_on_fetch": app_config.notes.collect_on_fetch,
        },
    )
    try:
        yield
    finally:
        logger.info("Application shutting down")
        if owns_database:
            await database.dispose()


def create_app(database: Database | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database: Note store to use. When omitted, the lifespan creates one
            from config and disposes of it on shutdown.
    """
    app_config = get_app_config()
    app_settings = app_config.application

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.docs_enabled else None,
        redoc_url="/redoc" if app_settings.docs_enabled else None,
        lifespan=lifespan,
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(RequestContextMiddleware)

    security_headers = app_config.security.headers
    if security_headers.enabled:
        app.add_middleware(SecurityHeadersMiddleware, headers=security_headers)

    cors_origins = app_settings.cors.origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=app_settings.api_prefix)

    return app


def get_app() -> FastAPI:
    """
    Get the application instance (lazy initialization).

    Use this instead of importing `app` directly to avoid
    import-time configuration errors.
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn quicknote.backend.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
