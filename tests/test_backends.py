"""Unit tests for backend plumbing: placeholders, quoting, EXPLAIN, connecting."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

import pymysql
import pytest

from dbbridge.backends import MySQLBackend, PostgresBackend, SQLiteBackend
from dbbridge.backends.base import statement_kind, to_pyformat
from dbbridge.compile.registry import BackendFactory
from dbbridge.config import ConnectionConfig
from dbbridge.errors import BackendConnectionError, UnsupportedDialectError
from dbbridge.schema.dialect import Dialect


class FakeCursor:
    def __init__(self, connection: FakeConnection) -> None:
        self._connection = connection
        self.description = None
        self.rowcount = -1

    def execute(self, sql: str, params: Any = None) -> None:
        self._connection.statements.append((sql, params))
        if self._connection.error is not None:
            raise self._connection.error
        self.description = [("column",)] if self._connection.rows else None

    def fetchall(self) -> list[dict[str, Any]]:
        return list(self._connection.rows)

    def close(self) -> None:
        pass


class FakeConnection:
    def __init__(self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.statements: list[tuple[str, Any]] = []

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)


# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------


def test_to_pyformat_converts_known_names():
    sql, params = to_pyformat(
        "SELECT * FROM t WHERE a = :a AND b LIKE '50%' AND c::text = :c AND d = ':a'",
        {":a": 1, ":c": "x"},
    )
    assert sql == "SELECT * FROM t WHERE a = %(a)s AND b LIKE '50%%' AND c::text = %(c)s AND d = ':a'"
    assert params == {"a": 1, "c": "x"}


def test_to_pyformat_leaves_unknown_names():
    sql, _ = to_pyformat("SELECT :missing", {":other": 1})
    assert sql == "SELECT :missing"


def test_prepare_without_params_keeps_percent():
    assert MySQLBackend().prepare("SELECT '100%'", {}) == ("SELECT '100%'", None)


def test_sqlite_prepare_strips_colons():
    assert SQLiteBackend().prepare("SELECT :a", {":a": 1}) == ("SELECT :a", {"a": 1})


@pytest.mark.parametrize(
    "sql, kind",
    [("select 1", "SELECT"), ("  INSERT INTO t", "INSERT"), ("(SELECT 1) UNION (SELECT 2)", "SELECT"), ("", "")],
)
def test_statement_kind(sql, kind):
    assert statement_kind(sql) == kind


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "name, mysql, pgsql",
    [
        ("title", "title", "title"),
        ("Title", "Title", "Title"),
        ("ORDER", "`ORDER`", '"order"'),
        ("order", "`order`", '"order"'),
        ("p.name", "p.name", "p.name"),
        ("p.Group", "p.`Group`", 'p."group"'),
        ("COUNT(*)", "COUNT(*)", "COUNT(*)"),
        ("*", "*", "*"),
    ],
)
def test_quote_if_needed(name, mysql, pgsql):
    assert MySQLBackend().quote_if_needed(name) == mysql
    assert PostgresBackend().quote_if_needed(name) == pgsql


def test_quote_identifier_escapes():
    assert MySQLBackend().quote_identifier("a`b") == "`a``b`"
    assert SQLiteBackend().quote_identifier('a"b') == '"a""b"'


def test_like_operator():
    assert PostgresBackend().like_operator == "ILIKE"
    assert SQLiteBackend().like_operator == "LIKE"


# ---------------------------------------------------------------------------
# EXPLAIN policy
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "version, expected",
    [("8.0.33", "EXPLAIN ANALYZE "), ("5.7.44-log", "EXPLAIN ANALYZE "), ("5.6.51", "EXPLAIN "),
     ("10.6.12-MariaDB", "EXPLAIN ")],
)
def test_mysql_explain_for_select(version, expected):
    connection = FakeConnection(rows=[{"version": version}])
    assert MySQLBackend().explain_prefix(connection, "SELECT") == expected


def test_mysql_explain_for_writes_skips_probe():
    connection = FakeConnection(rows=[{"version": "8.0.33"}])
    assert MySQLBackend().explain_prefix(connection, "UPDATE") == "EXPLAIN "
    assert connection.statements == []


def test_mysql_version_probe_failure_is_cached(caplog):
    backend = MySQLBackend()
    connection = FakeConnection(error=pymysql.err.OperationalError(1045, "denied"))
    with caplog.at_level(logging.WARNING):
        assert backend.explain_prefix(connection, "SELECT") == "EXPLAIN "
        assert backend.explain_prefix(connection, "SELECT") == "EXPLAIN "
    assert len(connection.statements) == 1
    assert "server version" in caplog.text


def test_postgres_and_sqlite_explain():
    assert PostgresBackend().explain_prefix(None, "SELECT") == "EXPLAIN ANALYZE "
    assert PostgresBackend().explain_prefix(None, "DELETE") == "EXPLAIN "
    assert SQLiteBackend().explain_prefix(None, "SELECT") == "EXPLAIN "


class TransactionConnection(FakeConnection):
    def __init__(self) -> None:
        super().__init__()
        self.blocks: list[str] = []

    @contextmanager
    def transaction(self):
        self.blocks.append("open")
        try:
            yield
        except Exception:
            self.blocks.append("rolled back")
            raise
        self.blocks.append("released")


def test_postgres_savepoint_wraps_a_transaction_block():
    connection = TransactionConnection()
    with pytest.raises(RuntimeError):
        with PostgresBackend().savepoint(connection):
            raise RuntimeError("column does not exist")
    with PostgresBackend().savepoint(connection):
        pass
    assert connection.blocks == ["open", "rolled back", "open", "released"]


def test_savepoint_is_noop_elsewhere():
    connection = FakeConnection()
    with MySQLBackend().savepoint(connection), SQLiteBackend().savepoint(connection):
        pass
    assert connection.statements == []


# ---------------------------------------------------------------------------
# Connecting
# ---------------------------------------------------------------------------


class FlakyBackend(MySQLBackend):
    """Fails over the socket, succeeds over TCP."""

    def __init__(self, fail_tcp: bool = False) -> None:
        super().__init__()
        self.fail_tcp = fail_tcp
        self.attempts: list[dict[str, Any]] = []

    def open(self, config, **kwargs):
        self.attempts.append(kwargs)
        if "socket" in kwargs or self.fail_tcp:
            raise pymysql.err.OperationalError(2002, "cannot connect")
        return FakeConnection()


CONFIG = ConnectionConfig.parse({"dbname": "gallery", "dbuser": "app", "dbsock": "/run/mysqld/mysqld.sock"})


def test_socket_then_tcp(caplog):
    backend = FlakyBackend()
    with caplog.at_level(logging.WARNING):
        connection = backend.connect(CONFIG)
    assert isinstance(connection, FakeConnection)
    assert backend.attempts == [{"socket": "/run/mysqld/mysqld.sock"}, {"host": "localhost", "port": 3306}]
    assert "via socket failed" in caplog.text


def test_all_attempts_fail():
    with pytest.raises(BackendConnectionError) as exc_info:
        FlakyBackend(fail_tcp=True).connect(CONFIG)
    assert exc_info.value.details == {"dbtype": "mysql", "dbname": "gallery"}


def test_no_socket_means_tcp_only():
    backend = FlakyBackend()
    backend.connect(ConnectionConfig.parse({"dbname": "gallery", "dbuser": "app", "dbport": 3310}))
    assert backend.attempts == [{"host": "localhost", "port": 3310}]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_factory_covers_every_dialect():
    assert BackendFactory.missing() == []
    assert isinstance(BackendFactory.create("pgsql"), PostgresBackend)
    assert BackendFactory.create(Dialect.SQLITE).dialect is Dialect.SQLITE


def test_factory_rejects_unknown_dialect():
    with pytest.raises(UnsupportedDialectError):
        BackendFactory.create("oracle")
