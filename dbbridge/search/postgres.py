"""PostgreSQL full-text search.

The native path reads a precomputed ``tsvector`` column::

    ALTER TABLE news ADD COLUMN tsv_weighted tsvector
        GENERATED ALWAYS AS (
            setweight(to_tsvector('simple', coalesce(name_post, '')), 'A') ||
            setweight(to_tsvector('simple', coalesce(text_post, '')), 'B')
        ) STORED;
    CREATE INDEX news_tsv_idx ON news USING GIN (tsv_weighted);

The fallback ranks ILIKE matches by trigram similarity and therefore needs
the ``pg_trgm`` extension.
"""
from __future__ import annotations

from typing import Any

from dbbridge.search.base import SEARCH_PARAM, FullTextStrategy, SearchClause, SearchRequest

TSVECTOR_COLUMN = "tsv_weighted"


class PostgresFullText(FullTextStrategy):
    """``tsvector @@ plainto_tsquery`` ranked by ``ts_rank``."""

    def native(self, request: SearchRequest) -> SearchClause:
        tsquery = f"plainto_tsquery({SEARCH_PARAM})"
        return SearchClause(
            where=f"{TSVECTOR_COLUMN} @@ {tsquery}",
            order=f"ts_rank({TSVECTOR_COLUMN}, {tsquery}) DESC",
            params={SEARCH_PARAM: request.query},
        )

    def fallback_order(self, request: SearchRequest, params: dict[str, Any]) -> str | None:
        terms: list[str] = []
        for i, column in enumerate(request.search_columns):
            name = f":rank_string_{i}"
            terms.append(f"similarity({column}, {name})")
            params[name] = request.query.strip()
        return f"({' + '.join(terms)}) DESC"
