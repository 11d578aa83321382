"""
FastAPI application for TeacherVibes.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .catalog.errors import (
    ArtifactNotFoundError,
    AuthRequiredError,
    CatalogError,
    CatalogLoadError,
    ConfirmationRequiredError,
    NotOwnerError,
    ValidationError,
)
from .config import get_settings
from .db.base import init_database
from .logs import configure_logging
from .routes import router

logger = structlog.get_logger()

settings = get_settings()

# Most specific first; anything else from the gateway is an upstream failure.
ERROR_STATUS = (
    (ValidationError, 422),
    (AuthRequiredError, 401),
    (NotOwnerError, 403),
    (ArtifactNotFoundError, 404),
    (ConfirmationRequiredError, 409),
    (CatalogLoadError, 503),
)


def status_for(error: CatalogError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 502


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings.log_level)
    logger.info("Starting TeacherVibes")

    try:
        init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Failed to start application: {e}")
        raise

    yield

    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Community library of AI-generated interactive teaching artifacts",
    version=importlib.metadata.version("teachervibes"),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc))
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code, content={"detail": exc.to_dict()}, headers=headers
    )


@app.get("/health", tags=["system"])
async def health() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok"}


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": importlib.metadata.version("teachervibes")}


app.include_router(router)

# Screenshots are served from the local object store
app.mount(
    "/storage",
    StaticFiles(directory=settings.storage_root, check_dir=False),
    name="storage",
)
