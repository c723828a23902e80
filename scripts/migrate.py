"""Apply pending schema migrations without starting the HTTP server.

Uses the same settings sources as the API process (env, `.env`, CLI flags),
so `DATABASE_URL` and `PORT` must be set.
"""

import sys

from conduit.common.config import load_settings
from conduit.common.db import new_pool
from conduit.common.errors import StartupError
from conduit.common.logging import configure_logging, logger


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings(argv)
        configure_logging(settings.log_filter, settings.service_name)
        pool = new_pool(
            settings.database_url,
            True,
            pool_size=1,
            max_overflow=0,
            migrations_path=settings.migrations_path,
            service_name=settings.service_name,
        )
    except StartupError as exc:
        logger.critical("%s stage failed: %s", exc.stage, exc)
        return exc.exit_code
    pool.dispose()
    print("Database schema is up to date.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
