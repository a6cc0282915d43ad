"""MySQL FULLTEXT search.

Requires a FULLTEXT index spanning exactly the searched columns.  Natural
language mode ignores words present in more than half of the rows, which is
surprising on small tables; short words fall under ``ft_min_word_len`` and
are better served by the fallback.
"""
from __future__ import annotations

from dbbridge.search.base import SEARCH_PARAM, FullTextStrategy, SearchClause, SearchRequest


class MySQLFullText(FullTextStrategy):
    """``MATCH ... AGAINST`` in natural language mode."""

    def native(self, request: SearchRequest) -> SearchClause:
        columns = ", ".join(request.search_columns)
        return SearchClause(
            where=f"MATCH({columns}) AGAINST({SEARCH_PARAM} IN NATURAL LANGUAGE MODE)",
            order=f"MATCH({columns}) AGAINST({SEARCH_PARAM}) DESC",
            params={SEARCH_PARAM: request.query},
        )
