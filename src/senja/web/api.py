"""FastAPI application factory.

Exposes the engine's read/write surface to a browser UI.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from senja import __version__
from senja.core.engine import Engine, get_engine, set_engine
from senja.web.routes import (
    health_router,
    settings_router,
    sync_router,
    tables_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    # Startup
    engine = get_engine()
    engine.init_admin_user()
    logger.info(
        "api_startup",
        remote_enabled=engine.has_api_url(),
        users=len(engine.users.all()),
        students=len(engine.students.all()),
    )
    yield
    # Shutdown: let in-flight sync jobs finish
    await engine.drain()
    logger.info("api_shutdown")


def create_app(engine: Engine | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        engine: Engine to serve; the global engine is used when omitted

    Returns:
        Configured FastAPI app instance
    """
    if engine is not None:
        set_engine(engine)

    app = FastAPI(
        title="Senja API",
        description="Local-first record store with spreadsheet sync",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(tables_router)
    app.include_router(settings_router)
    app.include_router(sync_router)

    return app
