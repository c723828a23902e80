"""Database pool bootstrap and schema migrations.

`new_pool` is the only way the process obtains a `ConnectionPool`: it either
returns a connected, fully migrated pool or raises, so nothing downstream ever
sees a half-initialised database.
"""

from dataclasses import dataclass

from alembic import command
from alembic.config import Config
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from conduit.common.config import DEFAULT_MIGRATIONS_PATH
from conduit.common.errors import DatabaseConnectionError, MigrationError
from conduit.common.logging import logger
from conduit.common.metrics import migrations_applied_total


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass


@dataclass(frozen=True)
class ConnectionPool:
    """Shared handle over one engine and its session factory.

    Checkout/return of connections is synchronised by the engine's pool, so
    callers share this handle freely across threads and requests.
    """

    engine: Engine
    session_factory: sessionmaker

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def _pool_options(database_url: str, pool_size: int, max_overflow: int, pool_timeout: int) -> dict:
    url = make_url(database_url)
    # In-memory SQLite runs on a single-connection pool that takes no sizing.
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return {}
    return {"pool_size": pool_size, "max_overflow": max_overflow, "pool_timeout": pool_timeout}


def alembic_config(migrations_path: str, database_url: str | None = None) -> Config:
    """Build an in-memory Alembic config pointed at our migration scripts."""

    cfg = Config()
    cfg.set_main_option("script_location", migrations_path)
    if database_url:
        cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def apply_migrations(
    engine: Engine,
    migrations_path: str = DEFAULT_MIGRATIONS_PATH,
    applied: list[str] | None = None,
) -> list[str]:
    """Upgrade the schema to head inside one transaction.

    Revisions run in revision-chain order. Returns the ids applied, oldest
    first; an empty list means the schema was already current. Pass `applied`
    to observe progress when a later step fails.
    """

    cfg = alembic_config(migrations_path)
    if applied is None:
        applied = []
    with engine.begin() as connection:
        cfg.attributes["connection"] = connection
        cfg.attributes["applied_revisions"] = applied
        command.upgrade(cfg, "head")
    return applied


def new_pool(
    database_url: str,
    run_migrations: bool,
    *,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    migrations_path: str = DEFAULT_MIGRATIONS_PATH,
    service_name: str = "conduit-api",
) -> ConnectionPool:
    """Connect to the database and optionally migrate it before handing it out.

    Raises `DatabaseConnectionError` when the database cannot be reached and
    `MigrationError` when migrations fail. There is exactly one attempt.
    """

    try:
        engine = create_engine(
            database_url,
            pool_pre_ping=True,
            **_pool_options(database_url, pool_size, max_overflow, pool_timeout),
        )
    except (ArgumentError, ImportError) as exc:
        raise DatabaseConnectionError("could not create database engine") from exc

    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        engine.dispose()
        raise DatabaseConnectionError("could not connect to the database") from exc

    if run_migrations:
        applied: list[str] = []
        try:
            apply_migrations(engine, migrations_path, applied)
        except Exception as exc:
            engine.dispose()
            raise MigrationError(f"could not migrate the database: failed at step {len(applied) + 1}") from exc
        migrations_applied_total.labels(service=service_name).inc(len(applied))
        logger.info("database migrations applied count=%s revisions=%s", len(applied), applied)
    else:
        logger.debug("skipping database migrations")

    # `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
    session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    return ConnectionPool(engine=engine, session_factory=session_factory)
