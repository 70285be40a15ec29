from __future__ import annotations

import pytest

from csvsearch.core.errors import ConfigError
from csvsearch.db.config import Settings, get_settings
from csvsearch.db.session import DatabasePool

_ENV = [
    "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_DB", "POSTGRES_USER", "POSTGRES_PASSWORD",
    "STORE_BACKEND", "INGEST_BATCH_SIZE", "SEARCH_MAX_PAGE_SIZE", "SEARCH_DEFAULT_PAGE_SIZE",
    "DB_POOL_MAX_SIZE",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_are_local_development_values(clean_env) -> None:
    settings = get_settings()

    assert settings.postgres_host == "127.0.0.1"
    assert settings.postgres_port == 5432
    assert settings.postgres_db == "csvdb"
    assert settings.store_backend == "postgres"
    assert settings.ingest_batch_size == 5000
    assert settings.search_default_page_size == 50
    assert settings.search_max_page_size == 500
    assert "*****" in settings.masked_dsn
    assert ":postgres@" not in settings.masked_dsn


def test_environment_overrides(clean_env) -> None:
    clean_env.setenv("POSTGRES_HOST", "db.internal")
    clean_env.setenv("INGEST_BATCH_SIZE", "250")
    clean_env.setenv("STORE_BACKEND", "memory")

    settings = get_settings()

    assert settings.postgres_host == "db.internal"
    assert settings.ingest_batch_size == 250
    assert settings.store_backend == "memory"
    assert "host=db.internal" in settings.conninfo


@pytest.mark.parametrize("name, value", [("POSTGRES_PORT", "not-a-port"), ("INGEST_BATCH_SIZE", "0")])
def test_invalid_values_raise_config_error(clean_env, name: str, value: str) -> None:
    clean_env.setenv(name, value)

    with pytest.raises(ConfigError) as excinfo:
        get_settings()

    assert name in excinfo.value.message


def test_empty_connection_value_fails_at_store_access(clean_env) -> None:
    clean_env.setenv("POSTGRES_HOST", "")
    clean_env.setattr(DatabasePool, "pool", None)

    settings = Settings()
    with pytest.raises(ConfigError) as excinfo:
        settings.conninfo
    assert "POSTGRES_HOST" in excinfo.value.message

    with pytest.raises(ConfigError):
        DatabasePool.get()
    assert DatabasePool.pool is None


def test_pool_is_built_once_and_reused(clean_env) -> None:
    built = []

    class _CountingPool:
        def __init__(self, **kwargs):
            built.append(kwargs)

    clean_env.setattr("csvsearch.db.session.ConnectionPool", _CountingPool)
    clean_env.setattr(DatabasePool, "pool", None)

    first = DatabasePool.get()
    second = DatabasePool.get()

    assert first is second
    assert len(built) == 1
    assert built[0]["max_size"] == 20
    assert "host=127.0.0.1" in built[0]["conninfo"]
