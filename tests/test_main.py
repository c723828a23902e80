"""End-to-end startup sequence with the serve stage stubbed out."""

import pytest
from sqlalchemy import create_engine, inspect, text

from conduit import main as main_module
from conduit.common.errors import MigrationError, SeedError, ServeError
from conduit.common.state_machine import (
    CONFIGURED,
    FAILED,
    POOL_READY,
    REGISTRY_COMPOSED,
    SEEDED,
    SERVING,
    STOPPED,
    UNCONFIGURED,
    StartupTracker,
)


@pytest.fixture
def served(monkeypatch):
    """Replace the HTTP server with a recorder and keep pytest's signal handlers."""

    calls = []

    async def fake_serve(port, cors_origin, registry, host="0.0.0.0"):
        calls.append({"port": port, "cors_origin": cors_origin, "registry": registry, "host": host})

    monkeypatch.setattr(main_module, "serve", fake_serve)
    monkeypatch.setattr(main_module, "_install_signal_handlers", lambda: None)
    return calls


def _env(monkeypatch, database_url, **extra):
    monkeypatch.setenv("DATABASE_URL", database_url)
    monkeypatch.setenv("PORT", "8080")
    for key, value in extra.items():
        monkeypatch.setenv(key, value)


def test_fresh_database_end_to_end(monkeypatch, caplog, database_url, served):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true", SEED="false")
    tracker = StartupTracker()

    with caplog.at_level("INFO", logger="conduit"):
        main_module.run([], tracker=tracker)

    assert tracker.history == [UNCONFIGURED, CONFIGURED, POOL_READY, REGISTRY_COMPOSED, SERVING, STOPPED]
    assert served[0]["port"] == 8080
    assert served[0]["registry"].settings.run_migrations is True

    messages = [record.getMessage() for record in caplog.records if record.name == "conduit"]
    serving_index = messages.index("migrations successfully ran, initializing http server")
    assert messages[serving_index + 1:] == ["shutdown complete"]
    assert not any("seeding" in message or "seed data" in message for message in messages)
    assert any("revisions=['0001_users', '0002_articles', '0003_comments']" in m for m in messages)

    engine = create_engine(database_url)
    try:
        with engine.connect() as connection:
            assert connection.execute(text("SELECT version_num FROM alembic_version")).scalar_one() == "0003_comments"
            assert connection.execute(text("SELECT count(*) FROM users")).scalar_one() == 0
    finally:
        engine.dispose()


def test_missing_settings_abort_before_any_io(monkeypatch, served):
    monkeypatch.setenv("PORT", "8080")

    def no_io(*_args, **_kwargs):
        raise AssertionError("pool must not be created")

    monkeypatch.setattr(main_module, "new_pool", no_io)
    assert main_module.main([]) == 2
    assert served == []


def test_migration_failure_never_composes_registry(monkeypatch, database_url, served, tmp_path):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true", MIGRATIONS_PATH=str(tmp_path / "no-migrations"))
    composed = []
    monkeypatch.setattr(main_module, "ServiceRegistry", lambda *args: composed.append(args))
    tracker = StartupTracker()

    with pytest.raises(MigrationError) as excinfo:
        main_module.run([], tracker=tracker)

    assert excinfo.value.exit_code == 4
    assert composed == []
    assert served == []
    assert tracker.history == [UNCONFIGURED, CONFIGURED, FAILED]


def test_seed_runs_when_enabled(monkeypatch, database_url, served):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true", SEED="true")
    tracker = StartupTracker()

    main_module.run([], tracker=tracker)

    assert SEEDED in tracker.history
    registry = served[0]["registry"]
    assert len(registry.articles.list_articles()) == 3


def test_seed_failure_aborts_before_serving(monkeypatch, database_url, served):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true", SEED="true")

    class BrokenSeed:
        def __init__(self, registry):
            self.registry = registry

        def seed(self):
            raise SeedError("seeding stopped")

    monkeypatch.setattr(main_module, "SeedService", BrokenSeed)
    assert main_module.main([]) == 5
    assert served == []


def test_seed_not_invoked_when_disabled(monkeypatch, database_url, served):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true")

    class ExplodingSeed:
        def __init__(self, registry):
            raise AssertionError("seed must not run")

    monkeypatch.setattr(main_module, "SeedService", ExplodingSeed)
    assert main_module.main([]) == 0
    assert len(served) == 1


def test_address_in_use_exits_non_zero(monkeypatch, caplog, database_url):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true")

    async def busy_serve(port, cors_origin, registry, host="0.0.0.0"):
        raise ServeError(f"address already in use {host}:{port}", address_in_use=True)

    monkeypatch.setattr(main_module, "serve", busy_serve)
    monkeypatch.setattr(main_module, "_install_signal_handlers", lambda: None)

    with caplog.at_level("INFO", logger="conduit"):
        assert main_module.main([]) == 6
    assert "serve stage failed: address already in use 0.0.0.0:8080" in caplog.text


def test_pool_is_released_after_shutdown(monkeypatch, database_url, served):
    _env(monkeypatch, database_url, RUN_MIGRATIONS="true")
    main_module.run([])
    engine = served[0]["registry"].pool.engine
    assert engine.pool.checkedout() == 0
    assert "users" in inspect(engine).get_table_names()
