"""Persistent log of slow and unparameterised statements.

Rows are deduplicated by the md5 of the statement text.  The table is
expected to look like this (types vary per backend)::

    CREATE TABLE query_logs (
        id             INTEGER PRIMARY KEY,
        query_hash     CHAR(32) NOT NULL UNIQUE,
        query_text     TEXT NOT NULL,
        reason         VARCHAR(32) NOT NULL,
        execution_time REAL NOT NULL,
        usage_count    INTEGER NOT NULL DEFAULT 1,
        created_at     TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        last_used_at   TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
"""
from __future__ import annotations

import hashlib
import logging
from typing import Any

from dbbridge.backends.base import Backend

logger = logging.getLogger(__name__)

#: Longest statement text stored in the log.
MAX_QUERY_TEXT = 65530

REASON_SLOW = "slow"
REASON_NO_PLACEHOLDERS = "no_placeholders"


class QueryLog:
    """Writes deduplicated query-log rows through the backend connection.

    Writes bypass the execution engine (no translation, EXPLAIN or
    recursive logging).  Failures are logged and swallowed.

    Args:
        backend: Backend used to run the log statements.
        connection: Live driver connection.
        table: Log table name, used verbatim.
    """

    def __init__(self, backend: Backend, connection: Any, table: str = "query_logs") -> None:
        self._backend = backend
        self._connection = connection
        self._table = table
        self._known: set[str] = set()

    def record(self, sql: str, reason: str, duration_ms: float) -> None:
        """Insert or bump the log row for ``sql``."""
        digest = hashlib.md5(sql.encode("utf-8")).hexdigest()
        try:
            if digest in self._known or self._exists(digest):
                self._bump(digest, duration_ms)
            else:
                self._insert(digest, sql, reason, duration_ms)
        except self._backend.errors as exc:
            logger.warning("Could not write query log row %s: %s", digest, exc)
            return
        self._known.add(digest)

    def _exists(self, digest: str) -> bool:
        rows = self._backend.run_isolated(
            self._connection,
            f"SELECT 1 AS found FROM {self._table} WHERE query_hash = :hash",
            {":hash": digest},
        )
        return bool(rows)

    def _insert(self, digest: str, sql: str, reason: str, duration_ms: float) -> None:
        self._backend.run_isolated(
            self._connection,
            f"INSERT INTO {self._table} (query_hash, query_text, reason, execution_time) "
            "VALUES (:hash, :text, :reason, :time)",
            {
                ":hash": digest,
                ":text": sql[:MAX_QUERY_TEXT],
                ":reason": reason,
                ":time": round(duration_ms, 3),
            },
        )

    def _bump(self, digest: str, duration_ms: float) -> None:
        self._backend.run_isolated(
            self._connection,
            f"UPDATE {self._table} SET usage_count = usage_count + 1, "
            "execution_time = CASE WHEN execution_time < :time THEN :time ELSE execution_time END, "
            "last_used_at = CURRENT_TIMESTAMP WHERE query_hash = :hash",
            {":hash": digest, ":time": round(duration_ms, 3)},
        )
