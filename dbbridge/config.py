"""Pydantic models for connection parameters and runtime settings.

Connection parameters are validated before any connection attempt, so a
misconfiguration surfaces as a :class:`~dbbridge.errors.ConfigurationError`
(or :class:`~dbbridge.errors.ResourceError` for a missing SQLite file)
rather than as a driver error::

    config = ConnectionConfig.parse({
        "dbtype": "pgsql",
        "dbname": "gallery",
        "dbuser": "gallery",
        "dbpass": "secret",
        "dbsock": "/var/run/postgresql",
    })

Values can also come from the environment (``DB_TYPE``, ``DB_HOST``,
``DB_PORT``, ``DB_SOCKET``, ``DB_USER``, ``DB_PASSWORD``, ``DB_NAME``); see
:meth:`ConnectionConfig.from_env`.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from dbbridge.errors import ConfigurationError, ResourceError
from dbbridge.schema.dialect import Dialect

_DEFAULT_PORTS = {Dialect.MYSQL: 3306, Dialect.PGSQL: 5432}

_ENV_FIELDS = {
    "dbtype": "DB_TYPE",
    "dbhost": "DB_HOST",
    "dbport": "DB_PORT",
    "dbsock": "DB_SOCKET",
    "dbuser": "DB_USER",
    "dbpass": "DB_PASSWORD",
    "dbname": "DB_NAME",
}


class ConnectionConfig(BaseModel):
    """Construction-time connection parameters.

    Attributes:
        dbtype: Backend kind.
        dbname: Database name; for SQLite, the path of the database file.
        dbuser: User name (required for MySQL and PostgreSQL).
        dbpass: Password.
        dbhost: Host for TCP connections.
        dbport: TCP port; the backend default when omitted.
        dbsock: Unix socket path, tried before host:port when set.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dbtype: Dialect = Dialect.MYSQL
    dbname: str = ""
    dbuser: str = ""
    dbpass: str = ""
    dbhost: str = "localhost"
    dbport: int | None = Field(default=None, ge=1, le=65535)
    dbsock: str = ""

    @field_validator("dbtype", mode="before")
    @classmethod
    def _coerce_dbtype(cls, value: Any) -> Dialect:
        if isinstance(value, Dialect):
            return value
        try:
            return Dialect(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unsupported dbtype {value!r}; expected mysql, pgsql or sqlite") from None

    @field_validator("dbport", mode="before")
    @classmethod
    def _blank_port(cls, value: Any) -> Any:
        return None if value in ("", None) else value

    @model_validator(mode="after")
    def _check_required(self) -> ConnectionConfig:
        if not self.dbname.strip():
            raise ValueError("dbname is required")
        if self.dbtype is not Dialect.SQLITE and not self.dbuser.strip():
            raise ValueError(f"dbuser is required for {self.dbtype}")
        return self

    @classmethod
    def parse(cls, data: ConnectionConfig | Mapping[str, Any]) -> ConnectionConfig:
        """Validate raw connection parameters.

        Raises:
            ConfigurationError: If a parameter is missing or malformed.
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid connection configuration: {exc}",
                code="INVALID_CONNECTION_CONFIG",
                details={"errors": [e["msg"] for e in exc.errors()]},
            ) from exc

    @classmethod
    def from_env(
        cls,
        defaults: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> ConnectionConfig:
        """Build a config from ``defaults`` overridden by ``DB_*`` variables."""
        environ = os.environ if environ is None else environ
        data = dict(defaults or {})
        for field_name, variable in _ENV_FIELDS.items():
            if variable in environ:
                data[field_name] = environ[variable]
        return cls.parse(data)

    @property
    def port(self) -> int | None:
        """The TCP port to use, falling back to the backend default."""
        return self.dbport or _DEFAULT_PORTS.get(self.dbtype)

    def check_resources(self) -> None:
        """Verify local resources before connecting.

        Raises:
            ResourceError: If the SQLite file is missing or not writable.
        """
        if self.dbtype is not Dialect.SQLITE:
            return
        path = Path(self.dbname)
        if not path.is_file():
            raise ResourceError(
                f"SQLite database file does not exist: {path}",
                code="SQLITE_FILE_MISSING",
                details={"path": str(path)},
            )
        if not os.access(path, os.R_OK | os.W_OK):
            raise ResourceError(
                f"SQLite database file is not writable: {path}",
                code="SQLITE_FILE_READONLY",
                details={"path": str(path)},
            )


class DatabaseSettings(BaseModel):
    """Runtime behaviour of a :class:`~dbbridge.database.Database`.

    Attributes:
        min_fulltext_search_length: Queries shorter than this skip native
            full-text search and go straight to the LIKE fallback.
        debug_sql: Run EXPLAIN before every statement and log the plan.
        log_queries: Record slow and unparameterised statements in
            ``query_log_table``.
        slow_query_threshold_ms: Duration above which a statement is slow.
        query_log_table: Table receiving query-log rows.
    """

    model_config = ConfigDict(extra="forbid")

    min_fulltext_search_length: int = Field(default=4, ge=0)
    debug_sql: bool = False
    log_queries: bool = False
    slow_query_threshold_ms: float = Field(default=200.0, ge=0)
    query_log_table: str = "query_logs"

    @classmethod
    def parse(cls, data: DatabaseSettings | Mapping[str, Any] | None) -> DatabaseSettings:
        """Validate raw settings; ``None`` yields the defaults.

        Raises:
            ConfigurationError: If a setting is unknown or malformed.
        """
        if data is None:
            return cls()
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(
                f"Invalid database settings: {exc}",
                code="INVALID_SETTINGS",
                details={"errors": [e["msg"] for e in exc.errors()]},
            ) from exc
