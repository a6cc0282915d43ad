"""Execution engine: prepares, runs and instruments one statement at a time.

``Executor.execute`` is the only path by which builder statements reach the
driver.  For every statement it:

1. closes the previous result cursor and resets the counters;
2. rewrites identifier quoting when the authoring dialect differs from the
   backend;
3. optionally runs EXPLAIN and logs the plan (failures are swallowed);
4. converts placeholders to the driver paramstyle and executes;
5. captures the affected-row count and, for INSERT, the generated id;
6. optionally records slow or unparameterised statements in the query log.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, ContextManager, TypeVar

from dbbridge.backends.base import Backend, statement_kind
from dbbridge.compile.base import Statement
from dbbridge.config import DatabaseSettings
from dbbridge.engine.querylog import REASON_NO_PLACEHOLDERS, REASON_SLOW, QueryLog
from dbbridge.engine.results import ResultCursor
from dbbridge.errors import OptionsError, QueryExecutionError
from dbbridge.schema.dialect import Dialect
from dbbridge.translate.translator import DialectTranslator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Executor:
    """Runs statements against one driver connection.

    Args:
        backend: Dialect-specific driver plumbing.
        connection: Live driver connection (owned by the caller).
        translator: Rewrites SQL authored in another dialect.
        settings: Runtime settings (EXPLAIN, query logging).
        query_log: Destination for slow/unparameterised statements.
    """

    def __init__(
        self,
        backend: Backend,
        connection: Any,
        translator: DialectTranslator,
        settings: DatabaseSettings,
        query_log: QueryLog | None = None,
    ) -> None:
        self._backend = backend
        self._connection = connection
        self._translator = translator
        self._settings = settings
        self._query_log = query_log
        self._result: ResultCursor | None = None
        self.affected_rows = 0
        self.last_insert_id = 0
        self.last_duration_ms = 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def result(self) -> ResultCursor | None:
        return self._result

    def execute(self, statement: Statement, source: Dialect) -> ResultCursor:
        """Execute ``statement`` authored in ``source``.

        Returns:
            The :class:`ResultCursor` of the executed statement.

        Raises:
            OptionsError: If the statement text is empty.
            QueryExecutionError: If the backend rejects the statement.
        """
        if not statement.sql.strip():
            raise OptionsError("Cannot execute an empty statement.", option="sql")
        self.clear()

        sql = self._translator.rewrite(statement.sql, source)
        kind = statement.kind or statement_kind(sql)
        if self._settings.debug_sql:
            self._explain(sql, statement.params, kind)

        driver_sql, driver_params = self._backend.prepare(sql, statement.params)
        cursor = self._backend.cursor(self._connection)
        started = time.perf_counter()
        try:
            cursor.execute(driver_sql, driver_params)
        except self._backend.errors as exc:
            cursor.close()
            raise QueryExecutionError(f"{kind or 'Statement'} failed: {exc}", sql=sql) from exc
        self.last_duration_ms = (time.perf_counter() - started) * 1000.0

        self._result = ResultCursor(self._backend, cursor)
        self.affected_rows = self._backend.affected_rows(cursor)
        if kind == "INSERT":
            self.last_insert_id = self._backend.last_insert_id(self._connection, cursor)

        self._log_query(sql, statement.params)
        return self._result

    def clear(self) -> None:
        """Close the current result cursor and reset the counters."""
        if self._result is not None:
            self._result.close()
            self._result = None
        self.affected_rows = 0
        self.last_insert_id = 0

    def run_isolated(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run an auxiliary statement outside the result slot.

        Bypasses translation, EXPLAIN and the query log; the current result
        cursor and counters are left untouched.

        Raises:
            QueryExecutionError: If the backend rejects the statement.
        """
        return self.call_driver(
            lambda: self._backend.run_isolated(self._connection, sql, params), sql
        )

    def savepoint(self) -> ContextManager[None]:
        """Scope a statement whose failure must not abort an open transaction."""
        return self._backend.savepoint(self._connection)

    def call_driver(self, action: Callable[[], T], label: str) -> T:
        """Run a driver call, wrapping driver errors in :class:`QueryExecutionError`."""
        try:
            return action()
        except self._backend.errors as exc:
            raise QueryExecutionError(f"{label} failed: {exc}", sql=label) from exc

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _explain(self, sql: str, params: dict[str, Any], kind: str) -> None:
        try:
            prefix = self._backend.explain_prefix(self._connection, kind)
            plan = self._backend.run_isolated(self._connection, prefix + sql, params)
        except Exception as exc:  # diagnostics must never affect the statement
            logger.warning("EXPLAIN failed for %s: %s", sql, exc)
            return
        logger.debug("%s%s\n%s", prefix, sql, "\n".join(str(row) for row in plan))

    def _log_query(self, sql: str, params: dict[str, Any]) -> None:
        if not self._settings.log_queries or self._query_log is None:
            return
        if self.last_duration_ms > self._settings.slow_query_threshold_ms:
            reason = REASON_SLOW
        elif not params:
            reason = REASON_NO_PLACEHOLDERS
        else:
            return
        self._query_log.record(sql, reason, self.last_duration_ms)
