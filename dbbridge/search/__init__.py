"""Full-text search: per-backend strategies, option merging and routing."""
from __future__ import annotations

from dbbridge.backends.base import Backend
from dbbridge.errors import UnsupportedDialectError
from dbbridge.schema.dialect import Dialect
from dbbridge.search.base import FullTextStrategy, SearchClause, SearchRequest
from dbbridge.search.engine import FullTextSearch
from dbbridge.search.mysql import MySQLFullText
from dbbridge.search.options import merge_search_options, rename_placeholder, trim_options
from dbbridge.search.postgres import PostgresFullText
from dbbridge.search.sqlite import SQLiteFullText

STRATEGIES: dict[Dialect, type[FullTextStrategy]] = {
    Dialect.MYSQL: MySQLFullText,
    Dialect.PGSQL: PostgresFullText,
    Dialect.SQLITE: SQLiteFullText,
}


def strategy_for(backend: Backend) -> FullTextStrategy:
    """Return the full-text strategy for ``backend``'s dialect.

    Raises:
        UnsupportedDialectError: If no strategy handles the dialect.
    """
    try:
        strategy_cls = STRATEGIES[backend.dialect]
    except KeyError:
        raise UnsupportedDialectError(backend.dialect) from None
    return strategy_cls(backend)


__all__ = [
    "STRATEGIES",
    "FullTextSearch",
    "FullTextStrategy",
    "MySQLFullText",
    "PostgresFullText",
    "SQLiteFullText",
    "SearchClause",
    "SearchRequest",
    "merge_search_options",
    "rename_placeholder",
    "strategy_for",
    "trim_options",
]
