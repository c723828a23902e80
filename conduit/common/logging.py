"""Structured JSON logging with startup-stage and request context fields."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter


request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
startup_stage_ctx: ContextVar[str] = ContextVar("startup_stage", default="")

_configured = False


class ContextFilter(logging.Filter):
    """Inject service name and correlation identifiers into every log record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        record.startup_stage = startup_stage_ctx.get()
        record.request_id = request_id_ctx.get()
        return True


def _level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {name!r}")
    return level


def parse_log_filter(spec: str) -> tuple[int, dict[str, int]]:
    """Parse a filter like ``info,conduit=debug,sqlalchemy::engine=warn``.

    A bare level applies to the root logger; ``target=level`` entries apply to
    the named logger. ``::`` separators are accepted as dots. Returns the root
    level and a mapping of logger name to level.
    """

    root_level = logging.INFO
    per_logger: dict[str, int] = {}
    for directive in spec.split(","):
        directive = directive.strip()
        if not directive:
            continue
        if "=" not in directive:
            root_level = _level(directive)
            continue
        target, _, level = directive.partition("=")
        target = target.strip().replace("::", ".")
        if not target:
            raise ValueError(f"empty logger name in directive {directive!r}")
        per_logger[target] = _level(level)
    return root_level, per_logger


def configure_logging(log_filter: str, service_name: str = "conduit-api") -> bool:
    """Configure the root logger once per process.

    Returns ``False`` without touching handlers when logging was already set up.
    """

    global _configured
    if _configured:
        logger.debug("logging already configured; ignoring new filter %s", log_filter)
        return False

    root_level, per_logger = parse_log_filter(log_filter)
    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter(service_name)
    handler.addFilter(context_filter)
    formatter = JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(service_name)s %(startup_stage)s %(request_id)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(root_level)
    root.addFilter(context_filter)
    for name, level in per_logger.items():
        logging.getLogger(name).setLevel(level)

    _configured = True
    return True


logger = logging.getLogger("conduit")
