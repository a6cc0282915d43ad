"""QueryOptions -> ``WHERE ... GROUP BY ... ORDER BY ... LIMIT ...`` fragment.

The compiler is deliberately literal: strings are trusted SQL, only the
structured ``where`` forms generate placeholders.  Placeholder collisions
are not resolved here; the full-text option merger handles those.
"""
from __future__ import annotations

import re
from typing import Any

from dbbridge.compile.base import CompiledFragment
from dbbridge.errors import OptionsError
from dbbridge.schema.dialect import Dialect
from dbbridge.schema.options import LIMIT_PAIR_RE, PLACEHOLDER_RE, QueryOptions

_GROUP_KEYS = ("OR", "NOT")
_NON_WORD_RE = re.compile(r"\W+")


class ConditionCompiler:
    """Compiles :class:`QueryOptions` into a trailing SQL fragment.

    Args:
        dialect: Backend dialect; only affects the ``offset,count`` LIMIT
            form, which PostgreSQL spells ``LIMIT count OFFSET offset``.
    """

    def __init__(self, dialect: Dialect = Dialect.MYSQL) -> None:
        self._dialect = dialect

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, options: QueryOptions | dict[str, Any] | None) -> CompiledFragment:
        """Compile ``options`` into clauses ordered WHERE, GROUP BY, ORDER BY, LIMIT.

        Returns:
            :class:`CompiledFragment` whose params are the caller's params
            plus any registered by keyed ``where`` entries.

        Raises:
            OptionsError: If an option has an unsupported type.
        """
        opts = QueryOptions.parse(options)
        params = dict(opts.params)
        parts: list[str] = []

        if opts.has_where():
            condition, where_params = self.build_where(opts.where)
            if condition:
                parts.append(f"WHERE {condition}")
            params.update(where_params)

        for keyword, value, option in (
            ("GROUP BY", opts.group, "group"),
            ("ORDER BY", opts.order, "order"),
        ):
            clause = self._build_text_clause(keyword, value, option)
            if clause:
                parts.append(clause)

        limit = self._build_limit(opts.limit)
        if limit:
            parts.append(limit)

        return CompiledFragment(sql=" ".join(parts), params=params)

    def build_where(self, where: Any) -> tuple[str, dict[str, Any]]:
        """Compile a ``where`` specification to a bare condition.

        Returns:
            ``(condition, params)``; ``condition`` has no ``WHERE`` keyword
            and is empty when ``where`` is empty.
        """
        if where is None or where is False:
            return "", {}
        if isinstance(where, str):
            return where.strip(), {}
        if isinstance(where, (list, dict)):
            params: dict[str, Any] = {}
            conditions = self._build_conditions(where, params)
            return " AND ".join(conditions), params
        raise OptionsError(
            f"'where' must be a string, list or dict, got {type(where).__name__}.",
            option="where",
        )

    # ------------------------------------------------------------------
    # WHERE internals
    # ------------------------------------------------------------------

    def _build_conditions(self, where: list | dict, params: dict[str, Any]) -> list[str]:
        items = enumerate(where) if isinstance(where, list) else where.items()
        conditions: list[str] = []
        for key, value in items:
            if isinstance(key, int) and not isinstance(key, bool):
                fragment = self._raw_fragment(value)
                if fragment:
                    conditions.append(fragment)
            elif isinstance(key, str) and key.upper() in _GROUP_KEYS:
                group = self._build_group(key.upper(), value, params)
                if group:
                    conditions.append(group)
            elif isinstance(key, str) and key.strip():
                conditions.append(self._build_equality(key.strip(), value, params))
            else:
                raise OptionsError(f"Unsupported 'where' key: {key!r}.", option="where")
        return conditions

    def _build_group(self, operator: str, value: Any, params: dict[str, Any]) -> str:
        if isinstance(value, str):
            members = [value.strip()] if value.strip() else []
        elif isinstance(value, (list, dict)):
            members = self._build_conditions(value, params)
        else:
            raise OptionsError(
                f"'{operator}' group must be a string, list or dict.", option="where"
            )
        if not members:
            return ""
        if operator == "OR":
            return f"({' OR '.join(members)})"
        return f"NOT ({' AND '.join(members)})"

    @staticmethod
    def _build_equality(column: str, value: Any, params: dict[str, Any]) -> str:
        if isinstance(value, str) and PLACEHOLDER_RE.match(value.strip()):
            return f"{column} = {value.strip()}"
        name = ":" + _NON_WORD_RE.sub("_", column).strip("_")
        params[name] = value
        return f"{column} = {name}"

    @staticmethod
    def _raw_fragment(value: Any) -> str:
        if not isinstance(value, str):
            raise OptionsError(
                f"Raw 'where' fragments must be strings, got {type(value).__name__}.",
                option="where",
            )
        return value.strip()

    # ------------------------------------------------------------------
    # GROUP BY / ORDER BY / LIMIT
    # ------------------------------------------------------------------

    @staticmethod
    def _build_text_clause(keyword: str, value: Any, option: str) -> str:
        if value is None or value is False:
            return ""
        if not isinstance(value, str):
            raise OptionsError(
                f"'{option}' must be a string or False, got {type(value).__name__}.",
                option=option,
            )
        value = value.strip()
        return f"{keyword} {value}" if value else ""

    def _build_limit(self, limit: Any) -> str:
        if limit is None or limit is False:
            return ""
        if isinstance(limit, int) and not isinstance(limit, bool):
            return f"LIMIT {limit}"
        if isinstance(limit, str):
            if limit.strip().isdigit():
                return f"LIMIT {int(limit)}"
            pair = LIMIT_PAIR_RE.match(limit)
            if pair:
                offset, count = int(pair.group(1)), int(pair.group(2))
                if self._dialect is Dialect.PGSQL:
                    return f"LIMIT {count} OFFSET {offset}"
                return f"LIMIT {offset}, {count}"
        raise OptionsError(
            f"'limit' must be an int, an 'offset,count' string or False, got {limit!r}.",
            option="limit",
        )
