"""dbbridge backends: one driver adapter per dialect."""
from dbbridge.backends.base import Backend
from dbbridge.backends.mysql import MySQLBackend
from dbbridge.backends.postgres import PostgresBackend
from dbbridge.backends.sqlite import SQLiteBackend

__all__ = [
    "Backend",
    "MySQLBackend",
    "PostgresBackend",
    "SQLiteBackend",
]
