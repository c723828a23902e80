"""Shared fixtures: isolated environment and SQLite-backed pools."""

import pytest

from conduit.common import logging as conduit_logging
from conduit.common.config import AppSettings
from conduit.common.db import new_pool
from conduit.services.registry import ServiceRegistry


SETTINGS_ENV = [
    "DATABASE_URL",
    "PORT",
    "HOST",
    "RUN_MIGRATIONS",
    "LOG_FILTER",
    "CORS_ORIGIN",
    "SEED",
    "SERVICE_NAME",
    "MIGRATIONS_PATH",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep host env vars, `.env` files and root logging out of every test."""

    for key in SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    # Leave pytest's capture handlers on the root logger.
    monkeypatch.setattr(conduit_logging, "_configured", True)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'conduit.db'}"


@pytest.fixture
def settings(database_url):
    return AppSettings(database_url=database_url, port=8080, cors_origin="http://localhost:3000")


@pytest.fixture
def migrated_pool(database_url):
    pool = new_pool(database_url, True)
    yield pool
    pool.dispose()


@pytest.fixture
def registry(migrated_pool, settings):
    return ServiceRegistry(migrated_pool, settings)
