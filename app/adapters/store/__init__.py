"""Quote record store adapters."""

from app.adapters.store.base import AbstractQuoteStore, StoreError
from app.adapters.store.factory import create_quote_store
from app.adapters.store.in_memory import InMemoryQuoteStore

__all__ = ["AbstractQuoteStore", "InMemoryQuoteStore", "StoreError", "create_quote_store"]
