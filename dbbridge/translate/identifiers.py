"""Identifier-quoting rewrites between dialects.

Each dialect quotes identifiers differently::

    mysql   `photo`.`name`
    pgsql   "photo"."name"
    sqlite  "photo"."name"  or  [photo].[name]

The rewrite is a best-effort textual transform.  Single-quoted string
literals are skipped, but SQL is not parsed: a double-quoted string literal
in MySQL text, for instance, is treated as an identifier.
"""
from __future__ import annotations

import re
from typing import Callable

from dbbridge.schema.dialect import Dialect

# A single-quoted literal, with '' and backslash escapes.
_LITERAL = r"'(?:[^'\\]|\\.|'')*'"

_BACKTICK_RE = re.compile(rf"(?P<lit>{_LITERAL})|(?<!\\)`")
_DOUBLE_QUOTE_RE = re.compile(rf"(?P<lit>{_LITERAL})|(?<!\\)\"")
_SQLITE_IDENT_RE = re.compile(
    rf"(?P<lit>{_LITERAL})|\[(?P<bracket>[^\]]*)\]|\"(?P<quoted>(?:[^\"\\]|\\.)*)\""
)
_BRACKET_RE = re.compile(rf"(?P<lit>{_LITERAL})|\[(?P<bracket>[^\]]*)\]")
_BACKSLASH_ESCAPE_RE = re.compile(r"\\(.)")
_QUOTE_CHARS_RE = re.compile(r"[`\"\[\]]")


def _swap(replacement: str) -> Callable[[re.Match], str]:
    def repl(match: re.Match) -> str:
        return match.group("lit") or replacement

    return repl


def _sqlite_to_mysql(match: re.Match) -> str:
    if match.group("lit"):
        return match.group("lit")
    name = match.group("bracket")
    if name is None:
        name = _BACKSLASH_ESCAPE_RE.sub(r"\1", match.group("quoted"))
    return "`" + name.replace("`", "``") + "`"


def _sqlite_to_pgsql(match: re.Match) -> str:
    if match.group("lit"):
        return match.group("lit")
    return '"' + match.group("bracket").replace('"', '""') + '"'


_REWRITERS: dict[tuple[Dialect, Dialect], Callable[[str], str]] = {
    (Dialect.MYSQL, Dialect.PGSQL): lambda sql: _BACKTICK_RE.sub(_swap('"'), sql),
    (Dialect.MYSQL, Dialect.SQLITE): lambda sql: _BACKTICK_RE.sub(_swap('"'), sql),
    (Dialect.PGSQL, Dialect.MYSQL): lambda sql: _DOUBLE_QUOTE_RE.sub(_swap("`"), sql),
    (Dialect.PGSQL, Dialect.SQLITE): lambda sql: sql,
    (Dialect.SQLITE, Dialect.MYSQL): lambda sql: _SQLITE_IDENT_RE.sub(_sqlite_to_mysql, sql),
    (Dialect.SQLITE, Dialect.PGSQL): lambda sql: _BRACKET_RE.sub(_sqlite_to_pgsql, sql),
}


def rewrite_identifiers(sql: str, source: Dialect, target: Dialect) -> str:
    """Rewrite identifier quoting in ``sql`` from ``source`` to ``target``.

    Args:
        sql: Statement text authored in ``source``.
        source: Authoring dialect.
        target: Backend dialect.

    Returns:
        The rewritten text, or ``sql`` unchanged when the dialects match.
    """
    if source is target:
        return sql
    return _REWRITERS[(source, target)](sql)


def strip_identifier_quotes(name: str) -> str:
    """Remove every dialect's quote characters from an identifier.

    ``"`photo`.`name`"`` and ``'[photo].[name]'`` both become
    ``'photo.name'``.
    """
    return _QUOTE_CHARS_RE.sub("", name).strip()
