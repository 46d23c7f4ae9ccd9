"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → the status bound to the error class (400-500)
- Framework HTTP errors (404 unknown route, 405 wrong verb) → same shape
- Unexpected Exception → generic 500 (safety net)
- Body is always ``{"error": <message>, "code": ..., "request_id": ...}``
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import INTERNAL_ERROR_MESSAGE, AppError, RateLimitAppError
from app.core.logging import get_request_id
from app.core.rate_limit import build_rate_limit_headers

logger = logging.getLogger(__name__)

_HTTP_ERRORS: dict[int, tuple[str, str]] = {
    404: ("not_found", "Not found"),
    405: ("method_not_allowed", "Method not allowed"),
}


def build_error_body(code: str, message: str) -> dict[str, Any]:
    """Build the JSON error payload shared by every failure path.

    Args:
        code: Machine-readable error code.
        message: Human-readable message, safe to expose to clients.

    Returns:
        Dict with ``error`` (the message), ``code`` and ``request_id``.
    """
    return {
        "error": message,
        "code": code,
        "request_id": get_request_id(),
    }


def build_app_error_response(
    exc: AppError,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Translate a domain error into its JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_body(exc.code, exc.message),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    The HTTP status comes from the error class (ValidationAppError → 400,
    AuthenticationAppError → 401, NotFoundAppError → 404, RateLimitAppError →
    429, StoreAppError → 500, ...).

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error message.
    """
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers = None
    if isinstance(exc, RateLimitAppError):
        headers = build_rate_limit_headers(exc.details) or None

    return build_app_error_response(exc, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed request bodies with the common 400 error shape."""
    logger.warning(
        "request_validation_failed",
        extra={
            "error_count": len(exc.errors()),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return JSONResponse(
        status_code=400,
        content=build_error_body("invalid_request", "Invalid request body"),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Answer framework-raised HTTP errors (unknown route, wrong verb) in the common shape."""
    code, message = _HTTP_ERRORS.get(exc.status_code, ("http_error", str(exc.detail)))

    logger.info(
        "http_error_handled",
        extra={
            "status_code": exc.status_code,
            "request_method": request.method,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_body(code, message),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content=build_error_body("internal_server_error", INTERNAL_ERROR_MESSAGE),
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
