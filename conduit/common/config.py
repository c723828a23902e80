"""Environment-driven settings for the API process.

The process loads this once at startup through `load_settings`. Values come
from CLI flags, then environment variables, then an optional `.env` file in
the working directory (see `.env.example`).
"""

import argparse
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from conduit.common.errors import ConfigurationError
from conduit.common.logging import parse_log_filter


DEFAULT_MIGRATIONS_PATH = str(Path(__file__).resolve().parents[2] / "alembic")


def split_origins(value: str) -> list[str]:
    """Split a comma separated origin list, dropping blanks."""

    return [origin.strip() for origin in value.split(",") if origin.strip()]


class AppSettings(BaseSettings):
    """Immutable typed view of runtime configuration."""

    database_url: str
    port: int
    run_migrations: bool = False
    log_filter: str = "info,conduit=debug"
    cors_origin: str = "*"
    seed: bool = False
    host: str = "0.0.0.0"
    service_name: str = "conduit-api"
    pool_size: int = 5
    pool_max_overflow: int = 10
    pool_timeout_seconds: int = 30
    migrations_path: str = DEFAULT_MIGRATIONS_PATH
    otel_exporter_otlp_endpoint: str | None = None
    shutdown_timeout_seconds: int = 30
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @field_validator("database_url")
    @classmethod
    def _check_database_url(cls, value: str) -> str:
        try:
            make_url(value)
        except ArgumentError as exc:
            raise ValueError(f"not a database URL: {exc}") from exc
        return value

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("port must be between 1 and 65535")
        return value

    @field_validator("log_filter")
    @classmethod
    def _check_log_filter(cls, value: str) -> str:
        parse_log_filter(value)
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins parsed from the comma separated setting."""

        return split_origins(self.cors_origin)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="conduit", description="Run the Conduit API server.")
    parser.add_argument("--database-url", dest="database_url")
    parser.add_argument("--port", type=int)
    parser.add_argument("--host")
    parser.add_argument("--log-filter", dest="log_filter")
    parser.add_argument("--cors-origin", dest="cors_origin")
    parser.add_argument(
        "--run-migrations",
        dest="run_migrations",
        action=argparse.BooleanOptionalAction,
        default=None,
    )
    parser.add_argument("--seed", action=argparse.BooleanOptionalAction, default=None)
    return parser


def load_settings(argv: list[str] | None = None) -> AppSettings:
    """Build the settings snapshot or raise `ConfigurationError`.

    CLI flags override environment values. Nothing here touches the network.
    """

    parser = build_arg_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code == 0:
            raise
        raise ConfigurationError("invalid command line arguments") from exc
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    try:
        return AppSettings(**overrides)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) or "settings" for err in exc.errors())
        raise ConfigurationError(f"invalid configuration ({fields})") from exc
