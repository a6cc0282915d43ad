"""The closed set of SQL dialects dbbridge speaks.

A dialect names both a backend kind (what the connection talks to) and an
authoring convention (how identifiers are quoted and which date-format
tokens are used).  The two can differ: SQL written with MySQL backticks can
run against PostgreSQL once the translator has rewritten it.
"""
from __future__ import annotations

from enum import Enum

from dbbridge.errors import UnsupportedDialectError


class Dialect(str, Enum):
    """Supported dialects.

    The string values match the ``dbtype`` configuration values.
    """

    MYSQL = "mysql"
    PGSQL = "pgsql"
    SQLITE = "sqlite"

    @classmethod
    def coerce(cls, value: Dialect | str) -> Dialect:
        """Return the :class:`Dialect` for ``value``.

        Raises:
            UnsupportedDialectError: If ``value`` names no supported dialect.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise UnsupportedDialectError(value) from exc

    def __str__(self) -> str:
        return self.value


#: Every dialect, in a stable order.
ALL_DIALECTS: tuple[Dialect, ...] = (Dialect.MYSQL, Dialect.PGSQL, Dialect.SQLITE)
