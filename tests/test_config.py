import logging

import pytest

from config import AppConfig, Credentials, CredentialsError, GatewayConfig, configure_logging


def test_from_mapping_reads_channel_keys():
    credentials = Credentials.from_mapping({
        "engine": "postgres",
        "database": "analytics",
        "username": "pg",
        "password": "secret",
        "host": "db.local",
        "portNumber": "5432",
    })

    assert credentials.port == 5432
    assert credentials.database_path is None
    assert not credentials.is_file_based


def test_from_mapping_sqlite_needs_only_path():
    credentials = Credentials.from_mapping({"engine": "sqlite", "databasePath": "/tmp/x.db"})

    assert credentials.is_file_based
    assert credentials.database_path == "/tmp/x.db"


@pytest.mark.parametrize(
    "payload, missing",
    [
        ({}, "engine"),
        ({"engine": "sqlite"}, "database_path"),
        ({"engine": "mssql", "username": "sa", "host": "h"}, "database"),
    ],
)
def test_from_mapping_missing_fields(payload, missing):
    with pytest.raises(CredentialsError, match=missing):
        Credentials.from_mapping(payload)


def test_repr_hides_password():
    credentials = Credentials(engine="mysql", database="d", username="u", password="hunter2", host="h")

    assert "hunter2" not in repr(credentials)


def test_from_env(monkeypatch):
    monkeypatch.setenv("DB_ENGINE", "mysql")
    monkeypatch.setenv("DB_HOST", "localhost")
    monkeypatch.setenv("DB_PORT", "3307")
    monkeypatch.setenv("DB_DATABASE", "shop")
    monkeypatch.setenv("DB_USERNAME", "root")
    monkeypatch.setenv("DB_PASSWORD", "pw")

    credentials = Credentials.from_env()

    assert credentials.engine == "mysql"
    assert credentials.port == 3307
    assert credentials.missing_fields() == []


def test_gateway_config_from_env(monkeypatch):
    monkeypatch.setenv("GATEWAY_PREVIEW_LIMIT", "10")
    monkeypatch.setenv("DB_ECHO", "true")

    gateway_config = GatewayConfig()

    assert gateway_config.preview_limit == 10
    assert gateway_config.echo_sql is True


def test_app_config_validate(monkeypatch):
    monkeypatch.setenv("DB_ENGINE", "sqlite")
    monkeypatch.delenv("DB_PATH", raising=False)
    monkeypatch.setenv("GATEWAY_PREVIEW_LIMIT", "0")

    is_valid, errors = AppConfig.from_env().validate()

    assert not is_valid
    assert len(errors) == 2
    assert "database_path" in errors[0]


def test_configure_logging_sets_root_level(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", logging.WARNING)

    configure_logging("DEBUG")

    assert root.level == logging.DEBUG
