"""Statement builders for the CRUD facade.

Each builder returns a complete :class:`~dbbridge.compile.base.Statement`
(SQL text, parameters, verb).  Table and column arguments are trusted SQL
written in the caller's authoring dialect; only the trailing clauses come
from structured options.

Write statements are guarded:

* DELETE and UPDATE require a non-empty ``where``;
* GROUP BY is dropped from DELETE and UPDATE;
* ORDER BY / LIMIT on DELETE must come as a pair, and are dropped entirely
  on backends without ordered writes.
"""
from __future__ import annotations

import logging
from typing import Any

from dbbridge.backends.base import Backend
from dbbridge.compile.base import Statement
from dbbridge.compile.conditions import ConditionCompiler
from dbbridge.errors import OptionsError
from dbbridge.schema.options import QueryOptions

logger = logging.getLogger(__name__)

JOIN_TYPES = frozenset({"INNER", "LEFT", "RIGHT", "CROSS", "FULL", "LEFT OUTER", "RIGHT OUTER", "FULL OUTER"})
INSERT_MODES = frozenset({"", "ignore", "replace"})


def _require_text(value: Any, argument: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise OptionsError(f"'{argument}' must be a non-empty string.", option=argument)
    return value.strip()


def column_list(columns: str | list[str] | tuple[str, ...], argument: str = "columns") -> str:
    """Join ``columns`` into a select list."""
    if isinstance(columns, str):
        return _require_text(columns, argument)
    if isinstance(columns, (list, tuple)) and columns:
        return ", ".join(_require_text(c, argument) for c in columns)
    raise OptionsError(f"'{argument}' must be a non-empty string or list.", option=argument)


class StatementBuilder:
    """Builds SELECT / INSERT / UPDATE / DELETE / TRUNCATE statements.

    Args:
        backend: Backend whose dialect decides insert modes, TRUNCATE and
            ordered-write support.
    """

    def __init__(self, backend: Backend) -> None:
        self._backend = backend
        self._conditions = ConditionCompiler(backend.dialect)

    @property
    def conditions(self) -> ConditionCompiler:
        return self._conditions

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def select(
        self,
        columns: str | list[str],
        table: str,
        options: QueryOptions | dict[str, Any] | None = None,
    ) -> Statement:
        fragment = self._conditions.compile(options)
        sql = f"SELECT {column_list(columns)} FROM {_require_text(table, 'table')}"
        return Statement(sql=self._append(sql, fragment.sql), params=fragment.params, kind="SELECT")

    def join(
        self,
        columns: str | list[str],
        table: str,
        joins: list[dict[str, str]],
        options: QueryOptions | dict[str, Any] | None = None,
    ) -> Statement:
        """Build ``SELECT ... FROM table <JOIN ...> ...``.

        Each join is ``{"table": ..., "type": "LEFT", "on": ...}``; ``type``
        defaults to ``INNER`` and ``on`` is omitted for CROSS joins.
        """
        if not isinstance(joins, list) or not joins:
            raise OptionsError("'joins' must be a non-empty list.", option="joins")
        fragment = self._conditions.compile(options)
        parts = [f"SELECT {column_list(columns)} FROM {_require_text(table, 'table')}"]
        for join in joins:
            parts.append(self._join_clause(join))
        return Statement(sql=self._append(" ".join(parts), fragment.sql), params=fragment.params, kind="SELECT")

    @staticmethod
    def _join_clause(join: dict[str, str]) -> str:
        if not isinstance(join, dict):
            raise OptionsError("Each join must be a dict with 'table', 'type' and 'on'.", option="joins")
        join_table = _require_text(join.get("table"), "joins.table")
        join_type = str(join.get("type") or "INNER").strip().upper()
        if join_type not in JOIN_TYPES:
            raise OptionsError(f"Unsupported join type: {join_type!r}.", option="joins.type")
        if join_type == "CROSS":
            return f"CROSS JOIN {join_table}"
        on = _require_text(join.get("on"), "joins.on")
        return f"{join_type} JOIN {join_table} ON {on}"

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(
        self,
        data: dict[str, Any],
        table: str,
        mode: str = "",
        options: QueryOptions | dict[str, Any] | None = None,
    ) -> Statement:
        """Build an INSERT; ``data`` maps columns to SQL value expressions.

        Values are spliced as written (``":rate"``, ``"NOW()"``); bind the
        actual values through ``options["params"]``.
        """
        if not isinstance(data, dict) or not data:
            raise OptionsError("'data' must be a non-empty dict.", option="data")
        mode = (mode or "").strip().lower()
        if mode not in INSERT_MODES:
            raise OptionsError(f"Unsupported insert mode: {mode!r}.", option="mode")
        if mode == "replace" and not self._backend.supports_replace:
            raise OptionsError(f"Insert mode 'replace' is not supported on {self._backend.dialect}.", option="mode")
        opts = QueryOptions.parse(options)
        columns = ", ".join(_require_text(c, "data") for c in data)
        values = ", ".join(str(v) for v in data.values())
        sql = (
            f"{self._backend.insert_verb(mode)} {_require_text(table, 'table')} ({columns}) "
            f"VALUES ({values}){self._backend.insert_suffix(mode)}"
        )
        return Statement(sql=sql, params=dict(opts.params), kind="INSERT")

    def update(
        self,
        data: dict[str, Any],
        table: str,
        options: QueryOptions | dict[str, Any] | None = None,
    ) -> Statement:
        if not isinstance(data, dict) or not data:
            raise OptionsError("'data' must be a non-empty dict.", option="data")
        opts = self._guard_write(QueryOptions.parse(options), "UPDATE")
        fragment = self._conditions.compile(opts)
        assignments = ", ".join(f"{_require_text(c, 'data')} = {v}" for c, v in data.items())
        sql = f"UPDATE {_require_text(table, 'table')} SET {assignments}"
        return Statement(sql=self._append(sql, fragment.sql), params=fragment.params, kind="UPDATE")

    def delete(self, table: str, options: QueryOptions | dict[str, Any] | None = None) -> Statement:
        opts = self._guard_write(QueryOptions.parse(options), "DELETE")
        fragment = self._conditions.compile(opts)
        sql = f"DELETE FROM {_require_text(table, 'table')}"
        return Statement(sql=self._append(sql, fragment.sql), params=fragment.params, kind="DELETE")

    def truncate(self, table: str) -> Statement:
        sql = self._backend.truncate_sql(_require_text(table, "table"))
        return Statement(sql=sql, kind=sql.split(" ", 1)[0])

    def _guard_write(self, opts: QueryOptions, verb: str) -> QueryOptions:
        condition = self._conditions.build_where(opts.where)[0] if opts.has_where() else ""
        if not condition:
            raise OptionsError(f"{verb} requires a non-empty 'where' option.", option="where")
        updates: dict[str, Any] = {}
        if opts.group:
            logger.warning("GROUP BY is not allowed in %s; dropped %r", verb, opts.group)
            updates["group"] = None
        has_order = bool(opts.order)
        has_limit = opts.limit not in (None, False)
        if (has_order or has_limit) and not self._backend.supports_ordered_writes:
            logger.warning("%s does not support ORDER BY/LIMIT in %s; dropped", self._backend.dialect, verb)
            updates.update(order=None, limit=None)
        elif verb == "DELETE" and has_order != has_limit:
            logger.warning("DELETE needs ORDER BY and LIMIT together; dropped both")
            updates.update(order=None, limit=None)
        return opts.model_copy(update=updates) if updates else opts

    @staticmethod
    def _append(sql: str, fragment: str) -> str:
        return f"{sql} {fragment}" if fragment else sql
