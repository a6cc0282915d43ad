"""Unit tests for connection configuration and runtime settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dbbridge.config import ConnectionConfig, DatabaseSettings
from dbbridge.errors import ConfigurationError, ResourceError
from dbbridge.schema.dialect import Dialect


def test_defaults_and_port_fallback():
    config = ConnectionConfig.parse({"dbtype": "pgsql", "dbname": "gallery", "dbuser": "app"})
    assert config.dbtype is Dialect.PGSQL
    assert config.dbhost == "localhost"
    assert config.dbport is None
    assert config.port == 5432


def test_explicit_port_and_blank_port():
    assert ConnectionConfig.parse({"dbname": "g", "dbuser": "u", "dbport": "3307"}).port == 3307
    assert ConnectionConfig.parse({"dbname": "g", "dbuser": "u", "dbport": ""}).port == 3306


def test_dbtype_is_case_insensitive():
    assert ConnectionConfig.parse({"dbtype": " MySQL ", "dbname": "g", "dbuser": "u"}).dbtype is Dialect.MYSQL


@pytest.mark.parametrize(
    "data",
    [
        {"dbtype": "mysql", "dbuser": "u"},
        {"dbtype": "pgsql", "dbname": "g"},
        {"dbtype": "oracle", "dbname": "g", "dbuser": "u"},
        {"dbtype": "mysql", "dbname": "g", "dbuser": "u", "dbport": 70000},
        {"dbtype": "mysql", "dbname": "g", "dbuser": "u", "charset": "latin1"},
    ],
)
def test_invalid_config(data):
    with pytest.raises(ConfigurationError) as exc_info:
        ConnectionConfig.parse(data)
    assert exc_info.value.code == "INVALID_CONNECTION_CONFIG"


def test_sqlite_needs_no_user(tmp_path):
    path = tmp_path / "g.db"
    path.touch()
    config = ConnectionConfig.parse({"dbtype": "sqlite", "dbname": str(path)})
    config.check_resources()
    assert config.port is None


def test_sqlite_file_must_exist(tmp_path):
    config = ConnectionConfig.parse({"dbtype": "sqlite", "dbname": str(tmp_path / "missing.db")})
    with pytest.raises(ResourceError) as exc_info:
        config.check_resources()
    assert exc_info.value.details == {"path": str(tmp_path / "missing.db")}


def test_server_backends_skip_resource_check():
    ConnectionConfig.parse({"dbname": "g", "dbuser": "u"}).check_resources()


def test_from_env_overrides_defaults():
    environ = {"DB_TYPE": "pgsql", "DB_NAME": "gallery", "DB_USER": "app", "DB_SOCKET": "/run/postgresql"}
    config = ConnectionConfig.from_env({"dbtype": "mysql", "dbpass": "secret"}, environ)
    assert config.dbtype is Dialect.PGSQL
    assert config.dbpass == "secret"
    assert config.dbsock == "/run/postgresql"


def test_config_is_frozen():
    config = ConnectionConfig.parse({"dbname": "g", "dbuser": "u"})
    with pytest.raises(ValidationError):
        config.dbname = "other"


def test_settings_defaults():
    settings = DatabaseSettings.parse(None)
    assert settings.min_fulltext_search_length == 4
    assert settings.slow_query_threshold_ms == 200.0
    assert settings.query_log_table == "query_logs"
    assert not settings.debug_sql and not settings.log_queries


def test_settings_reject_negative_length():
    with pytest.raises(ConfigurationError):
        DatabaseSettings.parse({"min_fulltext_search_length": -1})
