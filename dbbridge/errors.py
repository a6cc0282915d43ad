"""Custom exception hierarchy for dbbridge.

All public errors inherit from DBBridgeError so callers can catch the base
class for any dbbridge-specific failure.
"""
from __future__ import annotations

from typing import Any


class DBBridgeError(Exception):
    """Base exception for all dbbridge errors.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. ``MISSING_WHERE``).
        details: Extra context for logging and diagnostics.
    """

    default_code = "DBBRIDGE_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error description."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class ConfigurationError(DBBridgeError):
    """Raised when connection parameters are missing or invalid.

    Detected before any connection attempt, never retried.
    """

    default_code = "CONFIGURATION_ERROR"


class UnsupportedDialectError(ConfigurationError):
    """Raised when a dialect name is not one of mysql, pgsql, sqlite."""

    def __init__(self, dialect: object) -> None:
        super().__init__(
            f"Unsupported dialect: {dialect!r}. Expected one of: mysql, pgsql, sqlite.",
            code="UNSUPPORTED_DIALECT",
            details={"dialect": repr(dialect)},
        )


class OptionsError(ConfigurationError):
    """Raised when query options or builder arguments are malformed.

    Args:
        message: Human-readable description.
        option: The option key being processed (``where``, ``limit``...).
    """

    default_code = "INVALID_OPTIONS"

    def __init__(self, message: str, option: str | None = None) -> None:
        super().__init__(message, details={"option": option} if option else None)
        self.option = option


class ResourceError(DBBridgeError):
    """Raised when a local resource (the SQLite file) is missing or unwritable."""

    default_code = "RESOURCE_ERROR"


class BackendConnectionError(DBBridgeError):
    """Raised when every connection attempt to the backend has failed."""

    default_code = "CONNECTION_FAILED"


class QueryExecutionError(DBBridgeError):
    """Raised when the backend rejects a statement.

    The driver exception is chained as ``__cause__``.

    Args:
        message: Human-readable description.
        sql: The statement text sent to the driver.
    """

    default_code = "QUERY_FAILED"

    def __init__(self, message: str, sql: str | None = None) -> None:
        super().__init__(message, details={"sql": sql} if sql else None)
        self.sql = sql


class SchemaVersionError(QueryExecutionError):
    """Raised when the schema version probe cannot be read."""

    default_code = "SCHEMA_VERSION_UNAVAILABLE"


class TransactionStateError(DBBridgeError):
    """Raised on begin while a transaction is open, or commit/rollback while idle."""

    default_code = "TRANSACTION_STATE"
