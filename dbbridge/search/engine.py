"""Full-text search with per-backend native strategies and LIKE fallback.

Routing for one call::

    query == "*"                      -> plain SELECT, no FTS machinery
    len(query) < min length           -> fallback
    health flag says native failed    -> fallback
    otherwise                         -> native; on QueryExecutionError mark
                                         unhealthy and fall back

The native attempt runs inside a backend savepoint so that its failure
leaves a caller's open transaction usable for the fallback.

The health flag is keyed by (backend, table, search columns) and versioned
with the schema version token, so bumping ``db_version.ver`` re-enables the
native path everywhere.
"""
from __future__ import annotations

import logging
from typing import Any

from dbbridge.backends.base import Backend
from dbbridge.cache import FtsHealthCache
from dbbridge.compile.base import Statement
from dbbridge.compile.statements import StatementBuilder
from dbbridge.config import DatabaseSettings
from dbbridge.engine.executor import Executor
from dbbridge.errors import OptionsError, QueryExecutionError, SchemaVersionError
from dbbridge.schema.dialect import Dialect
from dbbridge.schema.options import QueryOptions
from dbbridge.search.base import FullTextStrategy, SearchClause, SearchRequest
from dbbridge.search.options import merge_search_options, trim_options
from dbbridge.translate.translator import DialectTranslator

logger = logging.getLogger(__name__)

SCHEMA_VERSION_SQL = "SELECT ver FROM db_version LIMIT 1"
MATCH_ALL = "*"


def _names(value: Any, argument: str) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not value:
        raise OptionsError(f"'{argument}' must be a non-empty list of column names.", option=argument)
    names = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise OptionsError(f"'{argument}' entries must be non-empty strings.", option=argument)
        names.append(item.strip())
    return names


class FullTextSearch:
    """Runs searches for one backend.

    Args:
        backend: Backend supplying quoting and the dialect.
        executor: Executor bound to the live connection.
        builder: Statement builder for the final SELECT.
        translator: Source of the memoised identifier unescape.
        health: Native-search failure flags.
        settings: Supplies ``min_fulltext_search_length``.
        strategy: Native/fallback clause factory for ``backend``.
    """

    def __init__(
        self,
        backend: Backend,
        executor: Executor,
        builder: StatementBuilder,
        translator: DialectTranslator,
        health: FtsHealthCache,
        settings: DatabaseSettings,
        strategy: FullTextStrategy,
    ) -> None:
        self._backend = backend
        self._executor = executor
        self._builder = builder
        self._translator = translator
        self._health = health
        self._settings = settings
        self._strategy = strategy
        self.last_statement: Statement | None = None

    def search(
        self,
        columns: list[str],
        search_columns: list[str],
        query: str,
        table: str,
        options: QueryOptions | dict[str, Any] | list | None = None,
        source: Dialect | None = None,
    ) -> list[dict[str, Any]]:
        """Search ``table`` for ``query`` in ``search_columns``.

        Args:
            columns: Columns to return.
            search_columns: Columns to search.
            query: Search string; ``"*"`` returns every row.
            table: Table to search.
            options: Extra caller options merged with the search clauses.
            source: Dialect the caller's options are authored in.

        Returns:
            Matching rows; an empty list when nothing matches.

        Raises:
            OptionsError: If an argument is empty or malformed.
            SchemaVersionError: If the schema version cannot be read.
            QueryExecutionError: If the fallback query fails.
        """
        self.last_statement = None
        return_columns = _names(columns, "columns")
        searched = _names(search_columns, "search_columns")
        if not isinstance(table, str) or not table.strip():
            raise OptionsError("'table' must be a non-empty string.", option="table")
        if not isinstance(query, str) or not query:
            raise OptionsError("'query' must be a non-empty string.", option="query")
        source = source or self._backend.dialect
        external = trim_options(QueryOptions.parse(options))

        if query.strip() == MATCH_ALL:
            statement = self._builder.select(return_columns, table.strip(), external)
            return self._fetch(statement, source)

        version = self.schema_version()
        request = self._request(return_columns, searched, table, query)
        key = FtsHealthCache.key_for(
            self._backend.dialect.value,
            request.table_name,
            [self._translator.unescape(c) for c in searched],
        )

        if len(query) < self._settings.min_fulltext_search_length:
            logger.debug("Query %r shorter than %d characters; using fallback", query,
                         self._settings.min_fulltext_search_length)
        elif self._health.has_failed(key, version):
            logger.debug("Native search flagged unhealthy for %s; using fallback", key)
        else:
            statement = self._statement(self._strategy.native(request), request, external)
            try:
                with self._executor.savepoint():
                    rows = self._fetch(statement, source)
            except QueryExecutionError as exc:
                logger.warning("Native %s search on %s failed, falling back: %s",
                               self._backend.dialect, request.table_name, exc)
                self._health.mark(key, version, True)
            else:
                self._health.mark(key, version, False)
                return rows

        return self._fallback(request, external, source)

    def schema_version(self) -> str:
        """Read the schema version token.

        Raises:
            SchemaVersionError: If the probe fails or returns no row.
        """
        try:
            rows = self._executor.run_isolated(SCHEMA_VERSION_SQL)
        except QueryExecutionError as exc:
            raise SchemaVersionError(f"Cannot read schema version: {exc}", sql=SCHEMA_VERSION_SQL) from exc
        if not rows:
            raise SchemaVersionError("Schema version table is empty.", sql=SCHEMA_VERSION_SQL)
        return str(next(iter(rows[0].values())))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request(self, columns: list[str], searched: list[str], table: str, query: str) -> SearchRequest:
        quote = self._backend.quote_if_needed
        unescape = self._translator.unescape
        table_name = unescape(table.strip())
        return SearchRequest(
            columns=[quote(unescape(c)) for c in columns],
            search_columns=[quote(unescape(c)) for c in searched],
            table=quote(table_name),
            table_name=table_name,
            query=query,
        )

    def _fallback(self, request: SearchRequest, external: QueryOptions, source: Dialect) -> list[dict[str, Any]]:
        clause = self._strategy.fallback(request)
        if clause is None:
            return []
        return self._fetch(self._statement(clause, request, external), source)

    def _statement(self, clause: SearchClause, request: SearchRequest, external: QueryOptions) -> Statement:
        merged = merge_search_options(clause, external, self._builder.conditions)
        return self._builder.select(request.columns, clause.table or request.table, merged)

    def _fetch(self, statement: Statement, source: Dialect) -> list[dict[str, Any]]:
        self.last_statement = statement
        return self._executor.execute(statement, source).fetch_all()
