"""MySQL / MariaDB backend (PyMySQL)."""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from dbbridge.backends.base import Backend
from dbbridge.schema.dialect import Dialect

if TYPE_CHECKING:
    from dbbridge.config import ConnectionConfig

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)")


class MySQLBackend(Backend):
    """MySQL/MariaDB via PyMySQL.

    Parameter style: ``%(name)s``.  Identifiers are quoted with backticks.
    ``LIKE`` is case-insensitive for non-binary TEXT/VARCHAR columns by
    default, so there is no ILIKE.
    """

    supports_ordered_writes = True
    supports_replace = True

    def __init__(self) -> None:
        self._supports_explain_analyze: bool | None = None

    @property
    def dialect(self) -> Dialect:
        return Dialect.MYSQL

    @property
    def errors(self) -> tuple[type[BaseException], ...]:
        import pymysql

        return (pymysql.Error,)

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"

    def insert_verb(self, mode: str) -> str:
        if mode == "ignore":
            return "INSERT IGNORE INTO"
        if mode == "replace":
            return "REPLACE INTO"
        return "INSERT INTO"

    def open(self, config: ConnectionConfig, **kwargs: Any) -> Any:
        import pymysql
        from pymysql.cursors import DictCursor

        target: dict[str, Any]
        if "socket" in kwargs:
            target = {"unix_socket": kwargs["socket"]}
        else:
            target = {"host": kwargs["host"], "port": kwargs["port"]}
        return pymysql.connect(
            user=config.dbuser,
            password=config.dbpass,
            database=config.dbname,
            charset="utf8mb4",
            cursorclass=DictCursor,
            autocommit=True,
            **target,
        )

    def explain_prefix(self, connection: Any, kind: str) -> str:
        """``EXPLAIN ANALYZE`` for SELECT on MySQL >= 5.7, never on MariaDB."""
        if kind == "SELECT" and self._explain_analyze_available(connection):
            return "EXPLAIN ANALYZE "
        return "EXPLAIN "

    def _explain_analyze_available(self, connection: Any) -> bool:
        if self._supports_explain_analyze is None:
            self._supports_explain_analyze = False
            try:
                rows = self.run_isolated(connection, "SELECT VERSION() AS version")
            except self.errors as exc:
                logger.warning("Could not read MySQL server version: %s", exc)
                return False
            version = str(rows[0]["version"]) if rows else ""
            match = _VERSION_RE.match(version)
            if "mariadb" in version.lower() or not match:
                return False
            major, minor = int(match.group(1)), int(match.group(2))
            self._supports_explain_analyze = (major, minor) >= (5, 7)
        return self._supports_explain_analyze

    def begin(self, connection: Any) -> None:
        connection.begin()

    def commit(self, connection: Any) -> None:
        connection.commit()

    def rollback(self, connection: Any) -> None:
        connection.rollback()
