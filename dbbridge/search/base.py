"""Full-text search strategy abstractions.

A strategy turns a :class:`SearchRequest` into a :class:`SearchClause`: the
internal WHERE / ORDER BY / params that the engine merges with the caller's
options.  Each backend supplies a native clause; the LIKE fallback is
shared and only varies by operator and ranking.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from dbbridge.backends.base import Backend
from dbbridge.schema.dialect import Dialect

#: Placeholder of the search term in native clauses.
SEARCH_PARAM = ":search"


@dataclass(frozen=True)
class SearchRequest:
    """Normalised search arguments.

    Attributes:
        columns: Return columns, quoted for the backend.
        search_columns: Searched columns, quoted for the backend.
        table: Table, quoted for the backend.
        table_name: Table without quoting (for companion-table names and
            health-cache keys).
        query: The raw search string.
    """

    columns: list[str]
    search_columns: list[str]
    table: str
    table_name: str
    query: str


@dataclass
class SearchClause:
    """Internal clauses produced by a strategy.

    Attributes:
        where: Condition without the ``WHERE`` keyword.
        order: Ranking expression without ``ORDER BY``, or ``None``.
        params: Internal placeholder values keyed by ``:name``.
        table: Table to select from when it differs from the searched one.
    """

    where: str
    order: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    table: str | None = None


class FullTextStrategy(ABC):
    """Native and fallback search clauses for one backend.

    Args:
        backend: Backend supplying quoting and the LIKE operator.
    """

    def __init__(self, backend: Backend) -> None:
        self._backend = backend

    @property
    def dialect(self) -> Dialect:
        return self._backend.dialect

    @abstractmethod
    def native(self, request: SearchRequest) -> SearchClause:
        """Return the backend's native full-text clause."""

    def fallback(self, request: SearchRequest) -> SearchClause | None:
        """Return the substring-match clause, or None for a blank query.

        Every search column gets its own ``:search_string_<i>`` placeholder
        bound to ``%query%``; the conditions are OR'd together.
        """
        term = request.query.strip()
        if not term:
            return None
        conditions: list[str] = []
        params: dict[str, Any] = {}
        for i, column in enumerate(request.search_columns):
            name = f":search_string_{i}"
            conditions.append(f"{column} {self._backend.like_operator} {name}")
            params[name] = f"%{term}%"
        return SearchClause(
            where=f"({' OR '.join(conditions)})",
            order=self.fallback_order(request, params),
            params=params,
        )

    def fallback_order(self, request: SearchRequest, params: dict[str, Any]) -> str | None:
        """Ranking for fallback results; unordered by default.

        Implementations may add their own placeholders to ``params``.
        """
        return None
