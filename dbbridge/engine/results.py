"""Result cursor wrapper."""
from __future__ import annotations

from typing import Any

from dbbridge.backends.base import Backend


class ResultCursor:
    """Wraps an executed driver cursor and yields rows as plain dicts.

    Statements without a result set (INSERT, UPDATE...) produce no rows.
    The owner closes the cursor before the next statement runs.
    """

    def __init__(self, backend: Backend, cursor: Any) -> None:
        self._backend = backend
        self._cursor = cursor
        self._closed = False

    @property
    def has_rows(self) -> bool:
        return not self._closed and self._cursor.description is not None

    def fetch_row(self) -> dict[str, Any] | None:
        """Return the next row, or None when exhausted."""
        if not self.has_rows:
            return None
        row = self._cursor.fetchone()
        return self._backend.row_to_dict(row) if row is not None else None

    def fetch_all(self) -> list[dict[str, Any]]:
        """Return every remaining row."""
        if not self.has_rows:
            return []
        return [self._backend.row_to_dict(row) for row in self._cursor.fetchall()]

    def close(self) -> None:
        if not self._closed:
            self._cursor.close()
            self._closed = True
