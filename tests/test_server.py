"""Listener binding and serve-stage failures."""

import asyncio
import socket

import pytest

from conduit.api import server as server_module
from conduit.api.server import bind_socket, serve
from conduit.common.errors import ServeError


@pytest.fixture
def busy_port():
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    yield blocker.getsockname()[1]
    blocker.close()


def test_bind_socket_on_free_port():
    sock = bind_socket("127.0.0.1", 0)
    try:
        assert sock.getsockname()[1] > 0
    finally:
        sock.close()


def test_bind_socket_reports_address_in_use(busy_port):
    with pytest.raises(ServeError) as excinfo:
        bind_socket("127.0.0.1", busy_port)
    assert excinfo.value.address_in_use is True
    assert excinfo.value.exit_code == 6
    assert "address already in use" in str(excinfo.value)


def test_serve_does_not_mount_routes_when_port_is_taken(monkeypatch, busy_port, registry):
    mounted = []
    monkeypatch.setattr(server_module, "create_app", lambda *args: mounted.append(args))

    with pytest.raises(ServeError) as excinfo:
        asyncio.run(serve(busy_port, "*", registry, host="127.0.0.1"))
    assert excinfo.value.address_in_use is True
    assert mounted == []


def test_serve_wraps_runtime_crash(monkeypatch, registry):
    class CrashingServer:
        def __init__(self, config):
            self.config = config
            self.started = False

        async def serve(self, sockets=None):
            raise RuntimeError("event loop exploded")

    monkeypatch.setattr(server_module.uvicorn, "Server", CrashingServer)
    with pytest.raises(ServeError) as excinfo:
        asyncio.run(serve(0, "*", registry, host="127.0.0.1"))
    assert excinfo.value.address_in_use is False
    assert "crashed while serving" in str(excinfo.value)


def test_serve_returns_after_clean_shutdown(monkeypatch, registry):
    seen = {}

    class StoppingServer:
        def __init__(self, config):
            seen["config"] = config
            self.started = False

        async def serve(self, sockets=None):
            seen["sockets"] = sockets
            self.started = True

    monkeypatch.setattr(server_module.uvicorn, "Server", StoppingServer)
    assert asyncio.run(serve(0, "http://a.test,http://b.test", registry, host="127.0.0.1")) is None
    assert seen["config"].log_config is None
    assert len(seen["sockets"]) == 1
    assert seen["sockets"][0].fileno() == -1
