"""Startup-time helpers for safe config logging."""

from sqlalchemy.engine import make_url

from conduit.common.logging import logger


SECRET_MARKERS = ["KEY", "SECRET", "PASSWORD", "TOKEN"]


def _safe_value(name: str, value) -> str:
    """Return a printable value with simple redaction for secrets."""

    if value is None:
        return "<unset>"
    if any(secret in name.upper() for secret in SECRET_MARKERS):
        return "<redacted>"
    if name.upper().endswith("_URL") and "://" in str(value):
        return make_url(str(value)).render_as_string(hide_password=True)
    return str(value)


def log_startup_config(settings, keys: list[str]) -> None:
    """Log selected settings for quick troubleshooting."""

    config = {"service": settings.service_name}
    for key in keys:
        config[key] = _safe_value(key, getattr(settings, key, None))
    logger.info("startup_config=%s", config)
