"""
Template Indexer Application Entry Point

This module defines the FastAPI application instance, registers routers,
CORS and exception handling, and provides a test-friendly application
factory.
"""

from __future__ import annotations

import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .core.errors import (
    ConfigurationError,
    ProviderError,
    UploadValidationError,
    http_exception_handler,
    provider_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
    upload_validation_handler,
)

from .api import (
    health_routes,
    upload_routes,
)


logger = logging.getLogger("templates.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="template-indexer",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # CORS (any origin may upload)
    # --------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(UploadValidationError, upload_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.add_exception_handler(ConfigurationError, unhandled_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(upload_routes.router)

    @app.on_event("startup")
    async def _startup_log() -> None:
        logger.info(
            "Starting template-indexer (backend=%s, index=%s)",
            settings.vector_backend,
            settings.index_name,
        )
        if settings.openai_api_key is None:
            logger.warning("OPENAI_API_KEY is not set; uploads will fail")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
