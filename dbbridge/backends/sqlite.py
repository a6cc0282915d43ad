"""SQLite backend (stdlib ``sqlite3``)."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from dbbridge.backends.base import Backend
from dbbridge.schema.dialect import Dialect

if TYPE_CHECKING:
    from dbbridge.config import ConnectionConfig


class SQLiteBackend(Backend):
    """SQLite via the built-in ``sqlite3`` module.

    Parameter style: ``:name`` - the native named style, so statements pass
    through unchanged.  The connection uses ``isolation_level=None`` and
    transactions are driven with explicit BEGIN/COMMIT/ROLLBACK.

    Note: SQLite does not support ``ILIKE``; its ``LIKE`` is case-insensitive
    for ASCII by default.
    """

    supports_replace = True

    @property
    def dialect(self) -> Dialect:
        return Dialect.SQLITE

    @property
    def errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def insert_verb(self, mode: str) -> str:
        if mode == "ignore":
            return "INSERT OR IGNORE INTO"
        if mode == "replace":
            return "INSERT OR REPLACE INTO"
        return "INSERT INTO"

    def truncate_sql(self, table: str) -> str:
        return f"DELETE FROM {table}"

    def connection_attempts(self, config: ConnectionConfig) -> Iterator[tuple[str, dict[str, Any]]]:
        yield "file", {}

    def open(self, config: ConnectionConfig, **kwargs: Any) -> Any:
        connection = sqlite3.connect(config.dbname, isolation_level=None)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def prepare(self, sql: str, params: dict[str, Any]) -> tuple[str, Any]:
        return sql, {name.lstrip(":"): value for name, value in params.items()}

    def begin(self, connection: Any) -> None:
        connection.execute("BEGIN")

    def commit(self, connection: Any) -> None:
        connection.execute("COMMIT")

    def rollback(self, connection: Any) -> None:
        connection.execute("ROLLBACK")
