"""FastAPI dependencies wiring the quote service to its collaborators.

The store is process-wide, like the rate limiter: one instance is built on
first use and kept for the lifetime of the process. Tests replace
``get_quote_service`` through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header

from app.adapters.identity.base import VerifiedIdentity
from app.adapters.store.base import AbstractQuoteStore
from app.adapters.store.factory import create_quote_store
from app.core.auth import extract_bearer_token, get_identity_verifier
from app.core.config import settings
from app.core.rate_limit import get_rate_limiter
from app.services.quote_service import QuoteService

logger = logging.getLogger(__name__)

_store: AbstractQuoteStore | None = None


def get_quote_store() -> AbstractQuoteStore:
    """Return the process-wide quote store, creating it on first use."""
    global _store

    if _store is None:
        _store = create_quote_store()
        logger.info("store.initialized", extra={"backend": settings.app.store_backend})
    return _store


def get_quote_service() -> QuoteService:
    """Build the quote service for the current request."""
    limiter = get_rate_limiter() if settings.app.rate_limit_enabled else None
    return QuoteService(
        store=get_quote_store(),
        verifier=get_identity_verifier,
        limiter=limiter,
    )


async def get_current_identity(
    service: Annotated[QuoteService, Depends(get_quote_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> VerifiedIdentity:
    """FastAPI dependency resolving the caller from ``Authorization: Bearer``.

    Usage:
        @router.post("/quotes")
        async def create(identity: Annotated[VerifiedIdentity, Depends(get_current_identity)]):
            ...

    Raises:
        AuthenticationAppError: 401 if the credential is missing or invalid.
    """
    return await service.authenticate(extract_bearer_token(authorization))
