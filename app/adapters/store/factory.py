"""Factory for the configured quote record store."""

from app.adapters.store.base import AbstractQuoteStore
from app.adapters.store.in_memory import InMemoryQuoteStore
from app.core.config import settings
from app.core.errors import ValidationAppError


def create_quote_store() -> AbstractQuoteStore:
    """Instantiate the quote store selected by ``APP_STORE_BACKEND``.

    Returns:
        AbstractQuoteStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = settings.app.store_backend.lower()

    if backend == "memory":
        return InMemoryQuoteStore()

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown quote store backend: '{backend}'. Supported backends: memory",
    )
