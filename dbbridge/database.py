"""The public database-access facade.

One :class:`Database` owns one driver connection and routes every builder
call through the execution engine::

    from dbbridge import Database

    with Database({"dbtype": "sqlite", "dbname": "gallery.db"}) as db:
        db.select(["id", "title"], "articles", {"where": {"status": ":status"},
                                                "params": {":status": "published"}})
        rows = db.result_rows()

        with db.use_format("mysql"):
            db.select("`id`", "`articles`", {"limit": 1})

Statements are authored in the current *format* dialect, which defaults to
the backend's own.  When the two differ, identifier quoting is rewritten
before execution.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar, Union

from dbbridge.backends.base import Backend
from dbbridge.cache import CacheHandler, FtsHealthCache, NullCache, TranslationCaches
from dbbridge.compile.base import Statement
from dbbridge.compile.registry import BackendFactory
from dbbridge.compile.statements import StatementBuilder
from dbbridge.config import ConnectionConfig, DatabaseSettings
from dbbridge.engine.executor import Executor
from dbbridge.engine.querylog import QueryLog
from dbbridge.errors import TransactionStateError
from dbbridge.schema.dialect import Dialect
from dbbridge.schema.options import QueryOptions
from dbbridge.search import FullTextSearch, strategy_for
from dbbridge.translate.translator import DialectTranslator

logger = logging.getLogger(__name__)

T = TypeVar("T")

Options = Union[QueryOptions, dict[str, Any], list, None]


class Database:
    """Multi-dialect database access object.

    Not safe for concurrent use: the pending statement, result cursor and
    format dialect are single slots on the instance.

    Args:
        config: Connection parameters (validated before connecting).
        settings: Runtime behaviour; defaults apply when omitted.
        cache: Persistent cache collaborator; :class:`NullCache` when omitted.

    Raises:
        ConfigurationError: If ``config`` is invalid.
        ResourceError: If the SQLite file is missing or not writable.
        BackendConnectionError: If no connection attempt succeeds.
    """

    def __init__(
        self,
        config: ConnectionConfig | Mapping[str, Any],
        settings: DatabaseSettings | Mapping[str, Any] | None = None,
        cache: CacheHandler | None = None,
    ) -> None:
        self._config = ConnectionConfig.parse(config)
        settings = DatabaseSettings.parse(settings)
        self._settings = settings
        self._config.check_resources()
        if cache is None:
            cache = NullCache()

        self._backend = BackendFactory.create(self._config.dbtype)
        self._connection = self._backend.connect(self._config)
        try:
            self._setup(cache, settings)
        except Exception:
            self._backend.close(self._connection)
            raise

        self._format = self._backend.dialect
        self._pending: Statement | None = None
        self._in_transaction = False
        self._closed = False

    def _setup(self, cache: CacheHandler, settings: DatabaseSettings) -> None:
        self._caches = TranslationCaches.load(cache)
        self._translator = DialectTranslator(self._backend.dialect, self._caches)

        query_log = None
        if settings.log_queries:
            query_log = QueryLog(self._backend, self._connection, settings.query_log_table)
        self._executor = Executor(self._backend, self._connection, self._translator, settings, query_log)
        self._builder = StatementBuilder(self._backend)
        self._search = FullTextSearch(
            self._backend,
            self._executor,
            self._builder,
            self._translator,
            FtsHealthCache(cache),
            settings,
            strategy_for(self._backend),
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def dialect(self) -> Dialect:
        """Dialect of the connected backend."""
        return self._backend.dialect

    @property
    def current_format(self) -> Dialect:
        """Dialect the next statement is authored in."""
        return self._format

    @property
    def pending(self) -> Statement | None:
        """The statement most recently built, or None."""
        return self._pending

    @property
    def settings(self) -> DatabaseSettings:
        return self._settings

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def select(self, columns: str | list[str], table: str, options: Options = None) -> bool:
        return self._run(self._builder.select(columns, table, options))

    def join(
        self,
        columns: str | list[str],
        table: str,
        joins: list[dict[str, str]],
        options: Options = None,
    ) -> bool:
        return self._run(self._builder.join(columns, table, joins, options))

    def insert(self, data: dict[str, Any], table: str, mode: str = "", options: Options = None) -> bool:
        """Insert one row; ``mode`` is ``""``, ``"ignore"`` or ``"replace"``."""
        return self._run(self._builder.insert(data, table, mode, options))

    def update(self, data: dict[str, Any], table: str, options: Options = None) -> bool:
        return self._run(self._builder.update(data, table, options))

    def delete(self, table: str, options: Options = None) -> bool:
        return self._run(self._builder.delete(table, options))

    def truncate(self, table: str) -> bool:
        return self._run(self._builder.truncate(table))

    def _run(self, statement: Statement) -> bool:
        self._pending = statement
        self._executor.execute(statement, self._format)
        return True

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def result_rows(self) -> list[dict[str, Any]]:
        """Return every remaining row of the last statement."""
        result = self._executor.result
        return result.fetch_all() if result is not None else []

    def result_row(self) -> dict[str, Any] | None:
        """Return the next row of the last statement, or None."""
        result = self._executor.result
        return result.fetch_row() if result is not None else None

    def affected_rows(self) -> int:
        return self._executor.affected_rows

    def last_insert_id(self) -> int:
        return self._executor.last_insert_id

    # ------------------------------------------------------------------
    # Dialect helpers
    # ------------------------------------------------------------------

    def format_date(self, column: str, fmt: str) -> str:
        """Return a date-formatting expression for the backend.

        ``fmt`` uses the tokens of the current format dialect.
        """
        return self._translator.format_date(column, fmt, self._format)

    def search(
        self,
        columns: list[str],
        search_columns: list[str],
        query: str,
        table: str,
        options: Options = None,
    ) -> list[dict[str, Any]]:
        """Full-text search; see :class:`~dbbridge.search.FullTextSearch`.

        Returns the matching rows directly.  "No result" is an empty list,
        never ``False``; a blank fallback query returns ``[]`` without
        touching the database.  The statement that ran becomes
        :attr:`pending`.
        """
        try:
            return self._search.search(columns, search_columns, query, table, options, self._format)
        finally:
            if self._search.last_statement is not None:
                self._pending = self._search.last_statement

    # ------------------------------------------------------------------
    # Format context
    # ------------------------------------------------------------------

    @contextmanager
    def use_format(self, dialect: Dialect | str) -> Iterator[Dialect]:
        """Author statements in ``dialect`` for the duration of the block.

        Raises:
            UnsupportedDialectError: If ``dialect`` is not supported.
        """
        target = Dialect.coerce(dialect)
        previous = self._format
        self._format = target
        try:
            yield target
        finally:
            self._format = previous

    def with_format(self, dialect: Dialect | str, callback: Callable[[], T]) -> T:
        """Run ``callback`` with ``dialect`` as the format and return its result."""
        with self.use_format(dialect):
            return callback()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin(self, context: str = "") -> None:
        if self._in_transaction:
            raise TransactionStateError(f"Transaction already open ({context or 'no context'}).")
        self._executor.call_driver(lambda: self._backend.begin(self._connection), "BEGIN")
        self._in_transaction = True
        logger.info("Transaction started: %s", context)

    def commit(self, context: str = "") -> None:
        self._require_transaction("commit", context)
        try:
            self._executor.call_driver(lambda: self._backend.commit(self._connection), "COMMIT")
        finally:
            self._in_transaction = False
        logger.info("Transaction committed: %s", context)

    def rollback(self, context: str = "") -> None:
        self._require_transaction("rollback", context)
        try:
            self._executor.call_driver(lambda: self._backend.rollback(self._connection), "ROLLBACK")
        finally:
            self._in_transaction = False
        logger.info("Transaction rolled back: %s", context)

    def _require_transaction(self, action: str, context: str) -> None:
        if not self._in_transaction:
            raise TransactionStateError(f"Cannot {action} without an open transaction ({context or 'no context'}).")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Persist translation caches and close the connection."""
        if self._closed:
            return
        self._closed = True
        self._executor.clear()
        try:
            self._caches.flush()
        finally:
            self._backend.close(self._connection)
            logger.debug("Closed %s connection", self._backend.dialect)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Database {self._backend.dialect} {self._config.dbname!r}>"
