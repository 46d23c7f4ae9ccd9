"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Every error class is
bound to the HTTP status the API layer answers with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep the shape stable across error kinds.
    """

    code: str
    message: str
    hint: str
    min_value: int
    max_value: int
    actual_value: int
    http_status: int
    retry_after: float
    limit: int
    remaining: int
    reset_at: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message (safe to show to clients).
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""

    status_code = 400


class AuthenticationAppError(AppError):
    """Raised when the bearer credential is missing or cannot be verified."""

    status_code = 401


class NotFoundAppError(AppError):
    """Raised when a quote does not exist or is not owned by the caller."""

    status_code = 404


class MethodNotAllowedAppError(AppError):
    """Raised when an endpoint is invoked with an unsupported HTTP method."""

    status_code = 405


class RateLimitAppError(AppError):
    """Raised when the caller exhausted the mutation budget of the window."""

    status_code = 429


class StoreAppError(AppError):
    """Raised when the quote record store fails or reports no affected rows."""

    status_code = 500


class ConfigurationAppError(AppError):
    """Raised when a required setting is missing or invalid at request time."""

    status_code = 500


INTERNAL_ERROR_MESSAGE = "Internal server error"
