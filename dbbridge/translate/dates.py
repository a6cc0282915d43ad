"""Date-format token translation between MySQL, PostgreSQL and SQLite.

The three dialects format dates with different functions and token sets::

    mysql   DATE_FORMAT(col, '%d.%m.%Y %H:%i')
    pgsql   TO_CHAR(col, 'DD.MM.YYYY HH24:MI')
    sqlite  strftime('%d.%m.%Y %H:%M', col)

Every row of :data:`_TOKENS` is one date component spelled in each dialect;
an empty cell means the dialect has no equivalent and the token is dropped
from the output.  A format string is parsed into components and literal
text, then rendered for the target dialect.
"""
from __future__ import annotations

from typing import NamedTuple, Union

from dbbridge.schema.dialect import Dialect


class _Token(NamedTuple):
    mysql: str
    pgsql: str
    sqlite: str


_TOKENS: tuple[_Token, ...] = (
    _Token("%Y", "YYYY", "%Y"),
    _Token("%y", "YY", ""),
    _Token("%m", "MM", "%m"),
    _Token("%c", "FMMM", ""),
    _Token("%M", "FMMonth", ""),
    _Token("%b", "Mon", ""),
    _Token("%d", "DD", "%d"),
    _Token("%e", "FMDD", ""),
    _Token("%D", "FMDDth", ""),
    _Token("%j", "DDD", "%j"),
    _Token("%H", "HH24", "%H"),
    _Token("%k", "FMHH24", ""),
    _Token("%h", "HH12", ""),
    _Token("%l", "FMHH12", ""),
    _Token("%i", "MI", "%M"),
    _Token("%S", "SS", "%S"),
    _Token("%f", "US", ""),
    _Token("%p", "AM", ""),
    _Token("%W", "FMDay", ""),
    _Token("%a", "Dy", ""),
    _Token("%w", "", "%w"),
    _Token("%u", "", "%W"),
    _Token("%v", "IW", ""),
    _Token("", "", "%s"),
    _Token("", "", "%J"),
    _Token("", "", "%f"),
)

# Source-only spellings that share a row with a canonical token.
_MYSQL_ALIASES = {"%I": "%h", "%s": "%S"}
_PGSQL_ALIASES = {
    "Month": "FMMonth",
    "MONTH": "FMMonth",
    "MON": "Mon",
    "Day": "FMDay",
    "DAY": "FMDay",
    "DY": "Dy",
    "HH": "HH12",
    "PM": "AM",
    "pm": "AM",
    "am": "AM",
}

# MySQL composites expanded before parsing.
_MYSQL_COMPOSITES = {"%T": "%H:%i:%S", "%r": "%h:%i:%S %p"}


def _index(dialect: str, aliases: dict[str, str]) -> dict[str, _Token]:
    index = {getattr(t, dialect): t for t in _TOKENS if getattr(t, dialect)}
    for alias, canonical in aliases.items():
        index[alias] = index[canonical]
    return index


_MYSQL_INDEX = _index("mysql", _MYSQL_ALIASES)
_PGSQL_INDEX = _index("pgsql", _PGSQL_ALIASES)
_SQLITE_INDEX = _index("sqlite", {})
_PGSQL_KEYS = sorted(_PGSQL_INDEX, key=len, reverse=True)

_Part = Union[_Token, str]


def _parse_percent(fmt: str, index: dict[str, _Token]) -> list[_Part]:
    parts: list[_Part] = []
    i = 0
    while i < len(fmt):
        if fmt[i] == "%" and i + 1 < len(fmt):
            code = fmt[i : i + 2]
            if code == "%%":
                parts.append("%")
            else:
                # Tokens with no known meaning are dropped.
                parts.append(index.get(code, ""))
            i += 2
        else:
            parts.append(fmt[i])
            i += 1
    return parts


def _parse_pgsql(fmt: str) -> list[_Part]:
    parts: list[_Part] = []
    i = 0
    while i < len(fmt):
        if fmt[i] == '"':
            end = fmt.find('"', i + 1)
            end = len(fmt) if end == -1 else end
            parts.append(fmt[i + 1 : end])
            i = end + 1
            continue
        for key in _PGSQL_KEYS:
            if fmt.startswith(key, i):
                parts.append(_PGSQL_INDEX[key])
                i += len(key)
                break
        else:
            parts.append(fmt[i])
            i += 1
    return parts


def _parse(fmt: str, source: Dialect) -> list[_Part]:
    if source is Dialect.MYSQL:
        for composite, expansion in _MYSQL_COMPOSITES.items():
            fmt = fmt.replace(composite, expansion)
        return _parse_percent(fmt, _MYSQL_INDEX)
    if source is Dialect.SQLITE:
        return _parse_percent(fmt, _SQLITE_INDEX)
    return _parse_pgsql(fmt)


def _render(parts: list[_Part], target: Dialect) -> str:
    out: list[str] = []
    literal: list[str] = []

    def flush_literal() -> None:
        if not literal:
            return
        text = "".join(literal)
        literal.clear()
        if target is Dialect.PGSQL:
            # Letters would be read as TO_CHAR patterns.
            out.append(f'"{text}"' if any(c.isalpha() for c in text) else text)
        else:
            out.append(text.replace("%", "%%"))

    for part in parts:
        if isinstance(part, _Token):
            flush_literal()
            out.append(getattr(part, target.value))
        else:
            literal.append(part)
    flush_literal()
    return "".join(out)


def translate_date_format(fmt: str, source: Dialect, target: Dialect) -> str:
    """Translate a date-format string from ``source`` tokens to ``target`` tokens.

    Args:
        fmt: Format string in ``source`` spelling (e.g. ``'%d.%m.%Y'``).
        source: Dialect ``fmt`` is written for.
        target: Dialect of the function that will receive the result.

    Returns:
        The equivalent format string; components the target cannot express
        are omitted.
    """
    if source is target:
        return fmt
    return _render(_parse(fmt, source), target)


def date_format_expression(column: str, fmt: str, target: Dialect) -> str:
    """Return the target dialect's date formatting call for ``column``.

    ``fmt`` must already be in ``target`` spelling.
    """
    literal = fmt.replace("'", "''")
    if target is Dialect.MYSQL:
        return f"DATE_FORMAT({column}, '{literal}')"
    if target is Dialect.PGSQL:
        return f"TO_CHAR({column}, '{literal}')"
    return f"strftime('{literal}', {column})"
