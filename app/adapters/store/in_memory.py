"""In-memory quote record store.

Notes:
- Per-process only: every worker holds its own table, lost on restart.
- Thread-safe: a lock guards the table, so an update writes all of its
  columns before any other reader sees the row.
"""

from __future__ import annotations

import copy
import logging
import threading

from app.adapters.store.base import QUOTE_COLUMNS, AbstractQuoteStore, Filters, Row, StoreError

logger = logging.getLogger(__name__)


def _matches(row: Row, filters: Filters | None) -> bool:
    if not filters:
        return True
    return all(row.get(column) == value for column, value in filters.items())


def _check_columns(names) -> None:
    unknown = [name for name in names if name not in QUOTE_COLUMNS]
    if unknown:
        raise StoreError(f"Unknown column(s): {', '.join(sorted(unknown))}")


class InMemoryQuoteStore(AbstractQuoteStore):
    """Quote table kept in a dict keyed by row id."""

    def __init__(self, rows: list[Row] | None = None) -> None:
        self._lock = threading.RLock()
        self._rows: dict[str, Row] = {}
        for row in rows or []:
            self._insert_locked(row)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def _insert_locked(self, values: Row) -> Row:
        _check_columns(values)
        row_id = values.get("id")
        if not row_id:
            raise StoreError("Row id is required")
        if row_id in self._rows:
            raise StoreError(f"Duplicate row id: {row_id}")
        row = {column: values.get(column) for column in QUOTE_COLUMNS}
        self._rows[row_id] = row
        return copy.deepcopy(row)

    async def select(
        self,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        if filters:
            _check_columns(filters)
        if order_by:
            _check_columns([order_by])

        with self._lock:
            rows = [copy.deepcopy(row) for row in self._rows.values() if _matches(row, filters)]

        if order_by:
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        return rows

    async def insert(self, values: Row) -> Row:
        with self._lock:
            row = self._insert_locked(values)
        logger.debug("store.insert", extra={"row_id": row["id"]})
        return row

    async def update(self, filters: Filters, values: Row) -> list[Row]:
        _check_columns(filters)
        _check_columns(values)
        if "id" in values:
            raise StoreError("Row id cannot be updated")

        with self._lock:
            updated = []
            for row in self._rows.values():
                if _matches(row, filters):
                    row.update(values)
                    updated.append(copy.deepcopy(row))

        logger.debug("store.update", extra={"rows_affected": len(updated)})
        return updated

    async def delete(self, filters: Filters) -> int:
        _check_columns(filters)

        with self._lock:
            doomed = [row_id for row_id, row in self._rows.items() if _matches(row, filters)]
            for row_id in doomed:
                del self._rows[row_id]

        logger.debug("store.delete", extra={"rows_affected": len(doomed)})
        return len(doomed)
