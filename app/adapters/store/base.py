"""Quote record store interfaces.

The store is a single table of quote rows addressed by equality filters
(``{"id": ..., "user_id": ...}``), mirroring the filtered CRUD the hosted
database exposes. Rows are plain dicts keyed by column name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

Row = dict[str, Any]
Filters = Mapping[str, Any]

QUOTE_COLUMNS = ("id", "quote_text", "author_name", "user_id", "created_at", "updated_at")


class StoreError(Exception):
    """Raised by store implementations when an operation cannot complete."""


class AbstractQuoteStore(ABC):
    """Interface for quote record stores.

    All filters are conjunctions of column equality checks; an empty filter
    matches every row.
    """

    @abstractmethod
    async def select(
        self,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Return copies of all rows matching ``filters``."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, values: Row) -> Row:
        """Insert one row and return a copy of it as stored.

        Raises:
            StoreError: If a row with the same ``id`` already exists.
        """
        raise NotImplementedError

    @abstractmethod
    async def update(self, filters: Filters, values: Row) -> list[Row]:
        """Apply ``values`` to every matching row in one step.

        Returns:
            Copies of the updated rows (empty when nothing matched).
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, filters: Filters) -> int:
        """Delete matching rows and return how many were removed."""
        raise NotImplementedError
