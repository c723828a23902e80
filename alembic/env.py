"""Alembic environment for the Conduit schema.

The API process passes its own connection through `config.attributes` so that
migrations run on the pool it is about to hand out. The `alembic` CLI falls back
to `sqlalchemy.url` / `DATABASE_URL`.
"""

import os

from alembic import context
from sqlalchemy import create_engine

from conduit.common.db import Base
from conduit.common.logging import logger
from conduit.services.articles import models as _articles_models  # noqa: F401
from conduit.services.comments import models as _comments_models  # noqa: F401
from conduit.services.users import models as _users_models  # noqa: F401


config = context.config
target_metadata = Base.metadata


def _record_step(ctx, step, heads, run_args) -> None:
    """Log each applied revision and report it back to the caller."""

    del ctx, heads, run_args
    revision = step.up_revision_id if step.is_upgrade else step.down_revision_ids
    logger.info("migration step applied revision=%s upgrade=%s", revision, step.is_upgrade)
    applied = config.attributes.get("applied_revisions")
    if applied is not None and step.is_upgrade:
        applied.append(step.up_revision_id)


def _run(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
        on_version_apply=_record_step,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url") or os.environ["DATABASE_URL"]
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        _run(connection)
        return

    url = config.get_main_option("sqlalchemy.url") or os.environ["DATABASE_URL"]
    engine = create_engine(url)
    try:
        with engine.begin() as connection:
            _run(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
