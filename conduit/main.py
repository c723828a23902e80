"""Process entry point: configure, connect, compose, seed, serve.

Each stage runs once and only after the previous one succeeded. The first
failure aborts the sequence; `main` turns it into one log line naming the
stage and an exit status.
"""

import asyncio
import signal
import sys
import threading

from conduit.api.server import serve
from conduit.common.config import load_settings
from conduit.common.db import new_pool
from conduit.common.errors import StartupError
from conduit.common.logging import configure_logging, logger
from conduit.common.startup import log_startup_config
from conduit.common.state_machine import (
    CONFIGURED,
    POOL_READY,
    REGISTRY_COMPOSED,
    SEEDED,
    SERVING,
    STOPPED,
    StartupTracker,
)
from conduit.services.registry import ServiceRegistry
from conduit.services.seed.service import SeedService


STARTUP_CONFIG_KEYS = [
    "database_url",
    "port",
    "host",
    "run_migrations",
    "seed",
    "log_filter",
    "cors_origin",
]


def _note_signal(signum, frame) -> None:
    # uvicorn re-raises the signal it drained on; keep it from killing the process.
    del frame
    logger.info("termination signal handled signal=%s", signal.Signals(signum).name)


def _install_signal_handlers() -> None:
    if threading.current_thread() is not threading.main_thread():
        return
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _note_signal)


def run(argv: list[str] | None = None, tracker: StartupTracker | None = None) -> None:
    """Bring the process up and serve until shutdown.

    Raises the `StartupError` subclass of whichever stage failed.
    """

    tracker = tracker or StartupTracker()
    pool = None
    try:
        settings = load_settings(argv)
        configure_logging(settings.log_filter, settings.service_name)
        tracker.service_name = settings.service_name
        tracker.advance(
            CONFIGURED,
            "environment loaded and configuration parsed, initializing database connection pool",
        )
        log_startup_config(settings, STARTUP_CONFIG_KEYS)

        pool = new_pool(
            settings.database_url,
            settings.run_migrations,
            pool_size=settings.pool_size,
            max_overflow=settings.pool_max_overflow,
            pool_timeout=settings.pool_timeout_seconds,
            migrations_path=settings.migrations_path,
            service_name=settings.service_name,
        )
        tracker.advance(POOL_READY, "database connection pool ready")

        registry = ServiceRegistry(pool, settings)
        tracker.advance(REGISTRY_COMPOSED, "service registry composed")

        if settings.seed:
            logger.info("seeding enabled, creating test data")
            SeedService(registry.clone()).seed()
            tracker.advance(SEEDED, "seed data created")

        tracker.advance(SERVING, "migrations successfully ran, initializing http server")
        _install_signal_handlers()
        asyncio.run(serve(settings.port, settings.cors_origin, registry, host=settings.host))
        tracker.advance(STOPPED, "shutdown complete")
    except StartupError as exc:
        tracker.fail(exc)
        raise
    finally:
        if pool is not None:
            pool.dispose()


def main(argv: list[str] | None = None) -> int:
    """Run the process and map the outcome to an exit status."""

    try:
        run(argv)
    except StartupError as exc:
        message = f"{exc.stage} stage failed: {exc}"
        logger.critical(message)
        return exc.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
