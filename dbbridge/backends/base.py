"""Backend abstraction: one implementation per dialect.

The Template Method pattern (GoF) is used:

- ``Backend`` defines connection attempts, placeholder conversion and the
  shared cursor plumbing.
- ``MySQLBackend``, ``PostgresBackend`` and ``SQLiteBackend`` override the
  dialect-specific steps (driver, quoting, transactions, EXPLAIN mode,
  insert id retrieval).

Drivers are imported lazily so that installing dbbridge for one backend does
not require the other drivers to import cleanly.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from dbbridge.errors import BackendConnectionError
from dbbridge.schema.dialect import Dialect

if TYPE_CHECKING:
    from dbbridge.config import ConnectionConfig

logger = logging.getLogger(__name__)

# Single-quoted literal, or a ``:name`` placeholder not preceded by a word
# character or a colon (so PostgreSQL ``::text`` casts are left alone).
_PLACEHOLDER_SCAN_RE = re.compile(
    r"(?P<lit>'(?:[^'\\]|\\.|'')*')|(?<![:\w]):(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
)
_WORD_RE = re.compile(r"^\w+$")

#: Words that must be quoted when used as identifiers on any backend.
RESERVED_WORDS: frozenset[str] = frozenset({
    "all", "alter", "and", "any", "as", "asc", "between", "by", "case", "check",
    "column", "create", "cross", "default", "delete", "desc", "distinct", "drop",
    "else", "end", "exists", "from", "full", "grant", "group", "having", "in",
    "index", "inner", "insert", "into", "is", "join", "key", "left", "like",
    "limit", "match", "natural", "not", "null", "offset", "on", "or", "order",
    "outer", "primary", "rank", "references", "right", "select", "set", "table",
    "then", "to", "union", "update", "user", "using", "values", "when", "where",
})

_VERB_RE = re.compile(r"^\s*\(?\s*([A-Za-z]+)")


def statement_kind(sql: str) -> str:
    """Return the upper-cased leading verb of ``sql`` (``SELECT``, ``INSERT``...)."""
    match = _VERB_RE.match(sql)
    return match.group(1).upper() if match else ""


def to_pyformat(sql: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Convert ``:name`` placeholders to ``%(name)s``.

    Literal ``%`` characters are doubled because both PyMySQL and psycopg
    apply %-formatting to the whole statement when parameters are bound.
    Placeholders inside single-quoted literals, and names not present in
    ``params``, are left untouched.
    """
    bare = {name.lstrip(":"): value for name, value in params.items()}

    def repl(match: re.Match) -> str:
        if match.group("lit"):
            return match.group("lit")
        name = match.group("name")
        return f"%({name})s" if name in bare else match.group(0)

    escaped = sql.replace("%", "%%")
    return _PLACEHOLDER_SCAN_RE.sub(repl, escaped), bare


class Backend(ABC):
    """Dialect-specific driver plumbing used by the execution engine."""

    #: Whether UPDATE/DELETE accept ORDER BY and LIMIT.
    supports_ordered_writes: bool = False

    #: Whether INSERT has a replace-on-conflict form without a conflict target.
    supports_replace: bool = False

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def dialect(self) -> Dialect:
        """Return the dialect this backend speaks."""

    @property
    @abstractmethod
    def errors(self) -> tuple[type[BaseException], ...]:
        """Return the driver exception classes that signal a failed statement."""

    # ------------------------------------------------------------------
    # Quoting and SQL spelling
    # ------------------------------------------------------------------

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return ``name`` quoted for this dialect."""

    @property
    def like_operator(self) -> str:
        """Case-insensitive substring operator."""
        return "LIKE"

    def quote_if_needed(self, name: str) -> str:
        """Quote each dotted part of ``name`` that is a reserved word.

        Other words pass through bare so that the server's own case folding
        applies (``Title`` still finds ``title`` on PostgreSQL); anything that
        is not a single word (``*``, expressions) is left alone.
        """
        parts = []
        for part in name.strip().split("."):
            if _WORD_RE.match(part) and part.lower() in RESERVED_WORDS:
                parts.append(self.quote_reserved(part))
            else:
                parts.append(part)
        return ".".join(parts)

    def quote_reserved(self, word: str) -> str:
        """Quote a reserved word used as an identifier."""
        return self.quote_identifier(word)

    def insert_verb(self, mode: str) -> str:
        """Leading keywords for ``INSERT`` in ``mode`` (``""``, ``ignore``, ``replace``)."""
        return "INSERT INTO"

    def insert_suffix(self, mode: str) -> str:
        return ""

    def truncate_sql(self, table: str) -> str:
        return f"TRUNCATE TABLE {table}"

    def explain_prefix(self, connection: Any, kind: str) -> str:
        """Return the EXPLAIN prefix for a statement of ``kind``."""
        return "EXPLAIN "

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a connection, trying each attempt from :meth:`connection_attempts`.

        Raises:
            BackendConnectionError: If every attempt fails.
        """
        last_error: BaseException | None = None
        for label, kwargs in self.connection_attempts(config):
            try:
                connection = self.open(config, **kwargs)
            except Exception as exc:  # any driver failure moves on to the next attempt
                logger.warning("%s connection via %s failed: %s", self.dialect, label, exc)
                last_error = exc
                continue
            logger.info("Connected to %s database %r via %s", self.dialect, config.dbname, label)
            return connection
        raise BackendConnectionError(
            f"Could not connect to {self.dialect} database {config.dbname!r}: {last_error}",
            details={"dbtype": str(self.dialect), "dbname": config.dbname},
        ) from last_error

    def connection_attempts(self, config: ConnectionConfig) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield ``(label, open kwargs)``: unix socket first, then host:port."""
        if config.dbsock:
            yield "socket", {"socket": config.dbsock}
        yield "tcp", {"host": config.dbhost, "port": config.port}

    @abstractmethod
    def open(self, config: ConnectionConfig, **kwargs: Any) -> Any:
        """Open one driver connection."""

    def close(self, connection: Any) -> None:
        connection.close()

    # ------------------------------------------------------------------
    # Statement plumbing
    # ------------------------------------------------------------------

    def prepare(self, sql: str, params: dict[str, Any]) -> tuple[str, Any]:
        """Return ``(sql, params)`` in the driver's paramstyle."""
        if not params:
            return sql, None
        return to_pyformat(sql, params)

    def cursor(self, connection: Any) -> Any:
        return connection.cursor()

    def run_isolated(self, connection: Any, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run an auxiliary statement and return its rows.

        Used for EXPLAIN, version probes, insert ids and query-log writes.
        Backends where a failed statement poisons an open transaction
        override this to run inside a savepoint.
        """
        driver_sql, driver_params = self.prepare(sql, params or {})
        cursor = self.cursor(connection)
        try:
            cursor.execute(driver_sql, driver_params)
            if cursor.description is None:
                return []
            return [self.row_to_dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    @contextmanager
    def savepoint(self, connection: Any) -> Iterator[None]:
        """Scope in which a failed statement leaves an open transaction usable.

        A no-op where a failed statement does not abort the transaction.
        """
        yield

    def row_to_dict(self, row: Any) -> dict[str, Any]:
        return dict(row)

    def affected_rows(self, cursor: Any) -> int:
        return max(cursor.rowcount or 0, 0)

    def last_insert_id(self, connection: Any, cursor: Any) -> int:
        return int(cursor.lastrowid or 0)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @abstractmethod
    def begin(self, connection: Any) -> None: ...

    @abstractmethod
    def commit(self, connection: Any) -> None: ...

    @abstractmethod
    def rollback(self, connection: Any) -> None: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
