"""Prometheus metric definitions for the API process."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
startup_stage_seconds = Histogram(
    "startup_stage_seconds",
    "Seconds spent before entering each startup stage",
    ["service", "stage"],
)
migrations_applied_total = Counter(
    "migrations_applied_total",
    "Schema migration steps applied at startup",
    ["service"],
)
seed_rows_total = Counter("seed_rows_total", "Rows inserted by the seed routine", ["service", "kind"])


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
