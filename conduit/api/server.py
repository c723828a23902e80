"""HTTP listener lifecycle: bind, mount, serve, drain.

The socket is bound before any route is mounted so a busy port fails the
process without ever building the application.
"""

import errno
import socket

import uvicorn

from conduit.api.app import create_app
from conduit.common.config import split_origins
from conduit.common.errors import ServeError
from conduit.common.logging import logger
from conduit.common.tracing import instrument_app, setup_tracing
from conduit.services.registry import ServiceRegistry


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a TCP socket or raise `ServeError` naming the cause."""

    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        if exc.errno == errno.EADDRINUSE:
            raise ServeError(f"address already in use {host}:{port}", address_in_use=True) from exc
        raise ServeError(f"could not bind {host}:{port}") from exc
    sock.set_inheritable(True)
    return sock


async def serve(port: int, cors_origin: str, registry: ServiceRegistry, host: str = "0.0.0.0") -> None:
    """Serve the API until shutdown.

    Returns normally after a graceful shutdown (SIGINT/SIGTERM stop accepting,
    in-flight requests drain up to `shutdown_timeout_seconds`). Bind failures
    and crashes raise `ServeError`; the caller decides how the process exits.
    """

    settings = registry.settings
    sock = bind_socket(host, port)
    try:
        origins = split_origins(cors_origin)
        app = create_app(registry, origins)
        if setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint):
            instrument_app(app)
        config = uvicorn.Config(
            app,
            log_config=None,
            timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
        )
        server = uvicorn.Server(config)
        logger.info("http server listening host=%s port=%s cors_origins=%s", host, port, origins)
        try:
            await server.serve(sockets=[sock])
        except Exception as exc:
            raise ServeError("http server crashed while serving") from exc
        if not server.started:
            raise ServeError("http server stopped before it finished starting")
        logger.info("http server stopped")
    finally:
        sock.close()
