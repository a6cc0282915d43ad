"""PostgreSQL backend (psycopg 3)."""
from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from dbbridge.backends.base import Backend
from dbbridge.schema.dialect import Dialect

if TYPE_CHECKING:
    from dbbridge.config import ConnectionConfig

logger = logging.getLogger(__name__)


class PostgresBackend(Backend):
    """PostgreSQL via psycopg.

    Parameter style: ``%(name)s``.  The connection runs in autocommit mode;
    :meth:`begin` switches autocommit off until the transaction ends.
    Auxiliary statements run inside ``connection.transaction()`` so that a
    failure there never aborts the caller's transaction.
    """

    @property
    def dialect(self) -> Dialect:
        return Dialect.PGSQL

    @property
    def errors(self) -> tuple[type[BaseException], ...]:
        import psycopg

        return (psycopg.Error,)

    @property
    def like_operator(self) -> str:
        return "ILIKE"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def quote_reserved(self, word: str) -> str:
        # Quoting disables case folding; fold as the server would.
        return self.quote_identifier(word.lower())

    def insert_suffix(self, mode: str) -> str:
        return " ON CONFLICT DO NOTHING" if mode == "ignore" else ""

    def explain_prefix(self, connection: Any, kind: str) -> str:
        return "EXPLAIN ANALYZE " if kind == "SELECT" else "EXPLAIN "

    def open(self, config: ConnectionConfig, **kwargs: Any) -> Any:
        import psycopg
        from psycopg.rows import dict_row

        if "socket" in kwargs:
            # libpq takes the socket directory as ``host``.
            socket = kwargs["socket"]
            host = os.path.dirname(socket) if os.path.basename(socket).startswith(".s.PGSQL") else socket
            port = config.port
        else:
            host, port = kwargs["host"], kwargs["port"]
        return psycopg.connect(
            host=host,
            port=port,
            dbname=config.dbname,
            user=config.dbuser,
            password=config.dbpass,
            autocommit=True,
            row_factory=dict_row,
        )

    @contextmanager
    def savepoint(self, connection: Any) -> Iterator[None]:
        with connection.transaction():
            yield

    def run_isolated(self, connection: Any, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        with connection.transaction():
            return super().run_isolated(connection, sql, params)

    def last_insert_id(self, connection: Any, cursor: Any) -> int:
        try:
            rows = self.run_isolated(connection, "SELECT lastval() AS id")
        except self.errors as exc:
            # No sequence was touched in this session.
            logger.debug("lastval() unavailable: %s", exc)
            return 0
        return int(rows[0]["id"]) if rows else 0

    def begin(self, connection: Any) -> None:
        connection.autocommit = False

    def commit(self, connection: Any) -> None:
        try:
            connection.commit()
        finally:
            connection.autocommit = True

    def rollback(self, connection: Any) -> None:
        try:
            connection.rollback()
        finally:
            connection.autocommit = True
