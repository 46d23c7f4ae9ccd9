"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so the settings
singleton is built with test values.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-0123456789abcdef")
os.environ.setdefault("AUTH_JWT_ALGORITHM", "HS256")
os.environ.setdefault("AUTH_JWT_AUDIENCE", "authenticated")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from app.adapters.identity.jwt_verifier import JWTIdentityVerifier
from app.adapters.rate_limit.in_memory import InMemoryRateLimiter
from app.adapters.store.in_memory import InMemoryQuoteStore
from app.api.dependencies import get_quote_service
from app.core.app_factory import create_app
from app.core.config import settings
from app.services.quote_service import QuoteService

OWNER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ID = "22222222-2222-2222-2222-222222222222"
CREATED_AT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_token(
    sub: str | None = OWNER_ID,
    *,
    secret: str | None = None,
    expires_in: int = 3600,
    audience: str | None = "authenticated",
    **claims: Any,
) -> str:
    """Mint an access token shaped like the auth provider's."""
    payload: dict[str, Any] = {"exp": int(time.time()) + expires_in, **claims}
    if sub is not None:
        payload["sub"] = sub
    if audience is not None:
        payload["aud"] = audience
    return jwt.encode(payload, secret or settings.auth.jwt_secret, algorithm="HS256")


def auth_headers(sub: str = OWNER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub)}"}


def quote_row(
    quote_id: str = "q1",
    *,
    user_id: str = OWNER_ID,
    quote_text: str = "Original quote text here.",
    author_name: str = "Someone",
    created_at: datetime = CREATED_AT,
) -> dict[str, Any]:
    return {
        "id": quote_id,
        "quote_text": quote_text,
        "author_name": author_name,
        "user_id": user_id,
        "created_at": created_at,
        "updated_at": created_at,
    }


class SteppingClock:
    """Clock returning strictly increasing UTC datetimes."""

    def __init__(self, start: datetime = CREATED_AT + timedelta(days=1)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def limiter_clock() -> Mock:
    return Mock(return_value=1_000_000.0)


@pytest.fixture
def limiter(limiter_clock: Mock) -> InMemoryRateLimiter:
    return InMemoryRateLimiter(limit=10, window_seconds=60, clock=limiter_clock)


@pytest.fixture
def store() -> InMemoryQuoteStore:
    return InMemoryQuoteStore(
        [
            quote_row("q1"),
            quote_row("q2", user_id=OTHER_ID, quote_text="Someone else's words.", author_name="Other"),
        ]
    )


@pytest.fixture
def verifier() -> JWTIdentityVerifier:
    return JWTIdentityVerifier(secret=settings.auth.jwt_secret, audience="authenticated")


@pytest.fixture
def service(
    store: InMemoryQuoteStore,
    verifier: JWTIdentityVerifier,
    limiter: InMemoryRateLimiter,
) -> QuoteService:
    ids = iter(f"new-{n}" for n in range(1, 1000))
    return QuoteService(
        store=store,
        verifier=verifier,
        limiter=limiter,
        clock=SteppingClock(),
        id_factory=lambda: next(ids),
    )


@pytest.fixture
def app(service: QuoteService) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_quote_service] = lambda: service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token
