"""dbbridge - one database-access layer for MySQL, PostgreSQL and SQLite.

Public API
----------
``Database``
    Connection-owning facade: structured CRUD builders, result access,
    full-text search with fallback, transactions and the format switch.

``ConnectionConfig`` / ``DatabaseSettings``
    Validated construction-time parameters.

``CacheHandler`` / ``NullCache``
    Contract of the persistent cache collaborator.

Re-exported types
-----------------
``Dialect``, ``QueryOptions``, ``ConditionCompiler``, ``Statement`` and all
error classes.

Extensibility
-------------
Backends are looked up through ``BackendFactory``; a replacement can be
registered with::

    from dbbridge.compile.registry import BackendFactory

    @BackendFactory.register("sqlite")
    class TracingSQLiteBackend(SQLiteBackend):
        ...
"""

from __future__ import annotations

from dbbridge.backends import Backend, MySQLBackend, PostgresBackend, SQLiteBackend
from dbbridge.cache import CacheHandler, NullCache
from dbbridge.compile.base import CompiledFragment, Statement
from dbbridge.compile.conditions import ConditionCompiler
from dbbridge.compile.registry import BackendFactory
from dbbridge.config import ConnectionConfig, DatabaseSettings
from dbbridge.database import Database
from dbbridge.errors import (
    BackendConnectionError,
    ConfigurationError,
    DBBridgeError,
    OptionsError,
    QueryExecutionError,
    ResourceError,
    SchemaVersionError,
    TransactionStateError,
    UnsupportedDialectError,
)
from dbbridge.schema.dialect import Dialect
from dbbridge.schema.options import QueryOptions

# ---------------------------------------------------------------------------
# Register built-in backends with BackendFactory
# ---------------------------------------------------------------------------

BackendFactory.register_class("mysql", MySQLBackend)
BackendFactory.register_class("pgsql", PostgresBackend)
BackendFactory.register_class("sqlite", SQLiteBackend)

__all__ = [
    # Facade
    "Database",
    # Configuration
    "ConnectionConfig",
    "DatabaseSettings",
    "CacheHandler",
    "NullCache",
    # Query building
    "Dialect",
    "QueryOptions",
    "ConditionCompiler",
    "CompiledFragment",
    "Statement",
    # Backends
    "Backend",
    "BackendFactory",
    "MySQLBackend",
    "PostgresBackend",
    "SQLiteBackend",
    # Errors
    "DBBridgeError",
    "ConfigurationError",
    "UnsupportedDialectError",
    "OptionsError",
    "ResourceError",
    "BackendConnectionError",
    "QueryExecutionError",
    "SchemaVersionError",
    "TransactionStateError",
]
