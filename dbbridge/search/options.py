"""Merging of the internal search clauses with the caller's options.

The merge is shared by every native and fallback path::

    internal: where="MATCH(title) AGAINST(:search)", params={":search": "term"}
    external: where={"status": ":search"}, params={":search": "active"}

    merged:   where="MATCH(title) AGAINST(:search) AND (status = :search_ext_0)"
              params={":search": "term", ":search_ext_0": "active"}
"""
from __future__ import annotations

import re
from typing import Any

from dbbridge.compile.conditions import ConditionCompiler
from dbbridge.schema.options import QueryOptions
from dbbridge.search.base import SearchClause


def _token_re(name: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![\w:]){re.escape(name)}(?!\w)")


def trim_options(options: QueryOptions) -> QueryOptions:
    """Return ``options`` with surrounding whitespace removed from string values."""
    updates: dict[str, str] = {}
    for name in ("where", "group", "order", "limit"):
        value = getattr(options, name)
        if isinstance(value, str):
            updates[name] = value.strip()
    return options.model_copy(update=updates) if updates else options


def rename_placeholder(where: Any, old: str, new: str) -> Any:
    """Replace the placeholder token ``old`` with ``new`` throughout ``where``.

    Strings are rewritten on token boundaries (``:search`` does not touch
    ``:search_term``); lists and dicts are walked recursively, values only.
    """
    if isinstance(where, str):
        return _token_re(old).sub(new, where)
    if isinstance(where, list):
        return [rename_placeholder(item, old, new) for item in where]
    if isinstance(where, dict):
        return {key: rename_placeholder(value, old, new) for key, value in where.items()}
    return where


def merge_search_options(
    clause: SearchClause,
    external: QueryOptions,
    compiler: ConditionCompiler,
) -> QueryOptions:
    """Combine a strategy's clause with the caller's options.

    Precedence:

    * WHERE is ``internal AND (external)`` when both exist;
    * the internal ranking replaces any external ORDER BY;
    * GROUP BY and LIMIT come from the external options only;
    * params are the union; external names colliding with internal ones
      are renamed ``<name>_ext_<n>`` and internal values win on any
      residual collision.
    """
    external = trim_options(external)
    condition, where_params = compiler.build_where(external.where)
    external_params = {**external.params, **where_params}

    counter = 0
    for name in list(external_params):
        if name not in clause.params:
            continue
        renamed = f"{name}_ext_{counter}"
        while renamed in clause.params or renamed in external_params:
            counter += 1
            renamed = f"{name}_ext_{counter}"
        counter += 1
        external_params[renamed] = external_params.pop(name)
        condition = rename_placeholder(condition, name, renamed)

    if clause.where and condition:
        where = f"{clause.where} AND ({condition})"
    else:
        where = clause.where or condition or None

    return QueryOptions(
        where=where,
        group=external.group,
        order=clause.order or external.order,
        limit=external.limit,
        params={**external_params, **clause.params},
    )
