"""Boundary function of the update-quote endpoint.

``handle_update_quote`` maps one HTTP-style request to one response with all
collaborators (verifier, limiter, store) reached through the QuoteService it
is given, so it can be exercised without a server or a network.

Order of checks:
1. method (OPTIONS preflight → empty 200; anything but POST/PUT → 405)
2. bearer credential → 401
3. per-user rate limit → 429
4. JSON body → 400
5. quote_id / quote_text presence, text bounds → 400
6. ownership (merged with existence) → 404
7. write → 500 on store failure or nothing written
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from app.core.auth import extract_bearer_token
from app.core.errors import (
    INTERNAL_ERROR_MESSAGE,
    AppError,
    MethodNotAllowedAppError,
    RateLimitAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id
from app.core.rate_limit import build_rate_limit_headers
from app.services.quote_service import UPDATE_SUCCESS_MESSAGE, QuoteService

logger = logging.getLogger(__name__)

ALLOWED_METHODS = frozenset({"POST", "PUT"})
CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


@dataclass(frozen=True)
class EndpointRequest:
    """Transport-neutral view of an incoming request.

    Attributes:
        method: HTTP method (any case).
        headers: Request headers; lookups are case-insensitive.
        body: Raw request body.
    """

    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass
class EndpointResponse:
    status_code: int
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


def cors_headers(allow_origin: str = "*") -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
    }


def _error_response(
    status_code: int,
    code: str,
    message: str,
    base_headers: dict[str, str],
    extra_headers: dict[str, str] | None = None,
) -> EndpointResponse:
    headers = {**base_headers, **(extra_headers or {})}
    return EndpointResponse(
        status_code=status_code,
        body={"error": message, "code": code, "request_id": get_request_id()},
        headers=headers,
    )


def parse_json_body(body: bytes) -> dict[str, Any]:
    """Decode the request body as a JSON object.

    Raises:
        ValidationAppError: Body is not valid JSON or not a JSON object.
    """
    try:
        payload = json.loads(body.decode("utf-8")) if body else None
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Invalid JSON in request body",
        ) from exc

    if not isinstance(payload, dict):
        raise ValidationAppError(code="invalid_json", message="Invalid JSON in request body")
    return payload


async def handle_update_quote(
    request: EndpointRequest,
    service: QuoteService,
    *,
    allow_origin: str = "*",
) -> EndpointResponse:
    """Serve one update-quote request.

    Args:
        request: Incoming request.
        service: Quote service wired to the verifier, limiter and store.
        allow_origin: Value of Access-Control-Allow-Origin.

    Returns:
        EndpointResponse: 200 ``{success, message, quote}`` or an error
        response ``{error, code, request_id}``; CORS headers on both.
    """
    base_headers = cors_headers(allow_origin)
    method = request.method.upper()

    if method == "OPTIONS":
        return EndpointResponse(status_code=200, body=None, headers=base_headers)

    try:
        if method not in ALLOWED_METHODS:
            raise MethodNotAllowedAppError(code="method_not_allowed", message="Method not allowed")

        credential = extract_bearer_token(request.header("Authorization"))
        identity = await service.authenticate(credential)
        service.check_rate_limit(identity)

        payload = parse_json_body(request.body)
        quote = await service.apply_update(
            identity,
            payload.get("quote_id"),
            payload.get("quote_text"),
            payload.get("author_name"),
        )
    except AppError as exc:
        logger.warning(
            "update_quote.rejected",
            extra={
                "error_code": exc.code,
                "status_code": exc.status_code,
                "request_method": method,
            },
        )
        extra_headers = (
            build_rate_limit_headers(exc.details) if isinstance(exc, RateLimitAppError) else None
        )
        return _error_response(exc.status_code, exc.code, exc.message, base_headers, extra_headers)
    except Exception as exc:
        logger.error(
            "update_quote.unexpected_error",
            exc_info=exc,
            extra={
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
                "request_method": method,
            },
        )
        return _error_response(500, "internal_server_error", INTERNAL_ERROR_MESSAGE, base_headers)

    return EndpointResponse(
        status_code=200,
        body={
            "success": True,
            "message": UPDATE_SUCCESS_MESSAGE,
            "quote": quote.model_dump(mode="json"),
        },
        headers=base_headers,
    )
