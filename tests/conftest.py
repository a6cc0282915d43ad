"""Shared pytest fixtures for dbbridge unit and integration tests."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from dbbridge import Database
from dbbridge.backends import MySQLBackend, PostgresBackend, SQLiteBackend
from dbbridge.compile.statements import StatementBuilder
from tests.fixtures import MemoryCache, load_ddl

ARTICLES = [
    ("Sunset over the harbour", "Long exposure shots of the old port.", "published", 120),
    ("Macro photography basics", "Lenses, lighting and patience.", "published", 45),
    ("Draft: winter landscapes", "Snow, fog and low sun.", "draft", 0),
]


def seed_sqlite(path: Path) -> None:
    conn = sqlite3.connect(path)
    try:
        conn.executescript(load_ddl("sqlite"))
        conn.executemany(
            "INSERT INTO articles (title, body, status, views) VALUES (?, ?, ?, ?)",
            ARTICLES,
        )
        conn.execute("INSERT INTO articles_fts (id, title, body) SELECT id, title, body FROM articles")
        conn.executemany(
            "INSERT INTO notes (title, body) VALUES (?, ?)",
            [(title, body) for title, body, _, _ in ARTICLES],
        )
        conn.commit()
    finally:
        conn.close()


@pytest.fixture()
def sqlite_path(tmp_path: Path) -> Path:
    """A seeded SQLite database file."""
    path = tmp_path / "gallery.db"
    seed_sqlite(path)
    return path


@pytest.fixture()
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture()
def db(sqlite_path: Path, cache: MemoryCache) -> Iterator[Database]:
    """Database bound to the seeded SQLite file."""
    database = Database({"dbtype": "sqlite", "dbname": str(sqlite_path)}, cache=cache)
    yield database
    database.close()


@pytest.fixture(scope="session")
def mysql_builder() -> StatementBuilder:
    return StatementBuilder(MySQLBackend())


@pytest.fixture(scope="session")
def pg_builder() -> StatementBuilder:
    return StatementBuilder(PostgresBackend())


@pytest.fixture(scope="session")
def sqlite_builder() -> StatementBuilder:
    return StatementBuilder(SQLiteBackend())
