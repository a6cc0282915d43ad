"""SQLite FTS5 search through a companion virtual table.

The companion is named ``<table>_fts`` and must carry every column the
caller asks for, typically with the key columns marked ``UNINDEXED``::

    CREATE VIRTUAL TABLE articles_fts USING fts5(id UNINDEXED, title, body);
"""
from __future__ import annotations

from dbbridge.search.base import SEARCH_PARAM, FullTextStrategy, SearchClause, SearchRequest


def fts5_query(query: str) -> str:
    '''Quote every whitespace-separated term as an FTS5 string.

    ``don't`` becomes ``"don't"`` and ``say "hi"`` becomes
    ``"say" """hi"""``, so punctuation never reaches the FTS5 query parser.
    Quoted terms are implicitly AND'ed.
    '''
    terms = []
    for term in query.split():
        escaped = term.replace('"', '""')
        terms.append(f'"{escaped}"')
    return " ".join(terms)


class SQLiteFullText(FullTextStrategy):
    """``<table>_fts MATCH :search`` ordered by FTS5 ``rank``."""

    def native(self, request: SearchRequest) -> SearchClause:
        companion = self._backend.quote_identifier(f"{request.table_name}_fts")
        return SearchClause(
            where=f"{companion} MATCH {SEARCH_PARAM}",
            order="rank DESC",
            params={SEARCH_PARAM: fts5_query(request.query)},
            table=companion,
        )
