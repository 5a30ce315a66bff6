"""
Global Error Handling

This module defines the exception taxonomy of the template indexer and the
FastAPI handlers that map it onto HTTP responses.

Every failure surfaces to the client with the same envelope:

    { "success": false, "error": "<message>" }

Taxonomy
--------
- UploadValidationError -> 400 (bad input, nothing parsed)
- ProviderError         -> 500 (embedding or vector index failure)
- ConfigurationError    -> 500 (missing credentials)
- 405 from routing      -> fixed "Method not allowed" message
- anything else         -> 500, full traceback logged
"""

from __future__ import annotations

import logging
from typing import Dict, Any

import httpx
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("templates.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class UploadValidationError(ValueError):
    """Raised when an upload request carries no usable template content."""


class ProviderError(RuntimeError):
    """Base error for failures of an external provider (embeddings, index)."""


class ConfigurationError(RuntimeError):
    """Raised when a provider client cannot be built from the settings."""


def provider_error_message(response: httpx.Response) -> str:
    """
    Extract a human-readable message from a provider error response.

    OpenAI-style errors look like:
        { "error": { "message": "...", "type": "..." } }
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])

    return f"HTTP {response.status_code}: {response.reason_phrase}"


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def error_response(status_code: int, message: str) -> JSONResponse:
    payload: Dict[str, Any] = {
        "success": False,
        "error": message,
    }
    return JSONResponse(status_code=status_code, content=payload)


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def upload_validation_handler(
    request: Request,
    exc: UploadValidationError,
) -> JSONResponse:
    logger.info(
        "Rejected %s %s: %s", request.method, request.url.path, exc
    )
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Map malformed request bodies onto the 400 envelope instead of FastAPI's
    default 422 detail list.
    """
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request body: {location}: {first.get('msg', 'invalid')}"
    else:
        message = "Invalid request body"

    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        response = error_response(exc.status_code, "Method not allowed")
    else:
        response = error_response(exc.status_code, str(exc.detail))

    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def provider_error_handler(
    request: Request,
    exc: ProviderError,
) -> JSONResponse:
    """
    Provider failures are terminal for the request. The provider's own
    message is passed through so callers can tell quota, input and network
    failures apart.
    """
    logger.error(
        "Provider failure during %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full stack trace internally and returns a 500 carrying the
    exception message (or a generic message when there is none).
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) or "Internal server error",
    )
