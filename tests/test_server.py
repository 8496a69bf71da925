"""Tests for listen target selection, socket binding and server messages."""
from __future__ import annotations

import asyncio
import os
import signal
import stat
from pathlib import Path

import httpx
import pytest
import uvicorn
from fastapi import FastAPI

from core.server import (
    InkwellServer,
    ListenTarget,
    Listener,
    remove_stale_socket,
    resolve_listen_target,
    shutdown_message,
    startup_message,
)


class FakeServer:
    """Stands in for uvicorn: reports startup, then stops as if interrupted."""

    instances = []

    def __init__(self, config, on_started=None):
        self.config = config
        self.on_started = on_started
        self.received_signal = None
        self.sockets = None
        FakeServer.instances.append(self)

    async def serve(self, sockets=None):
        self.sockets = sockets
        if self.on_started:
            self.on_started()
        self.received_signal = signal.SIGINT


@pytest.fixture(autouse=True)
def reset_fake_server():
    FakeServer.instances = []
    yield


def _close(listener: Listener) -> None:
    for sock in listener._sockets or []:
        sock.close()


class TestResolveListenTarget:
    def test_tcp_by_default(self, settings):
        target = resolve_listen_target(settings)
        assert target == ListenTarget(host="127.0.0.1", port=2368)
        assert not target.is_socket
        assert target.describe() == "127.0.0.1:2368"

    def test_custom_host_and_port(self, make_settings):
        target = resolve_listen_target(make_settings(server_host="0.0.0.0", server_port=8000))
        assert (target.host, target.port) == ("0.0.0.0", 8000)

    def test_socket_flag_uses_default_path(self, make_settings, content_dir):
        target = resolve_listen_target(make_settings(server_socket=True))
        assert target.socket_path == content_dir / "testing.socket"
        assert target.is_socket

    def test_socket_string_used_as_path(self, make_settings, tmp_path):
        path = tmp_path / "custom.sock"
        target = resolve_listen_target(make_settings(server_socket=str(path)))
        assert target.socket_path == path


def test_remove_stale_socket(tmp_path):
    stale = tmp_path / "old.sock"
    stale.write_text("")

    assert remove_stale_socket(stale) is True
    assert not stale.exists()
    assert remove_stale_socket(stale) is False


class TestListener:
    def test_socket_mode_replaces_stale_file(self, make_settings, tmp_path):
        path = tmp_path / "s.sock"
        path.write_text("left over from a crash")
        listener = Listener(FastAPI(), make_settings(server_socket=str(path)), server_class=FakeServer)

        try:
            target = listener.bind()
            mode = path.stat().st_mode
            assert target.socket_path == path
            assert stat.S_ISSOCK(mode)
            assert stat.S_IMODE(mode) == 0o744
            assert listener.server.config.uds == str(path)
        finally:
            _close(listener)

    def test_socket_permissions_configurable(self, make_settings, tmp_path):
        path = tmp_path / "p.sock"
        listener = Listener(
            FastAPI(),
            make_settings(server_socket=str(path), socket_mode=0o660),
            server_class=FakeServer,
        )
        try:
            listener.bind()
            assert stat.S_IMODE(path.stat().st_mode) == 0o660
        finally:
            _close(listener)

    def test_tcp_mode_configures_host_and_port(self, settings):
        listener = Listener(FastAPI(), settings, server_class=FakeServer)
        target = listener.bind()

        assert target.describe() == "127.0.0.1:2368"
        assert listener.server.config.host == "127.0.0.1"
        assert listener.server.config.port == 2368
        assert listener._sockets is None

    def test_bind_only_once(self, settings):
        listener = Listener(FastAPI(), settings, server_class=FakeServer)
        listener.bind()
        with pytest.raises(RuntimeError):
            listener.bind()
        assert len(FakeServer.instances) == 1

    @pytest.mark.asyncio
    async def test_serve_requires_bind(self, settings):
        listener = Listener(FastAPI(), settings, server_class=FakeServer)
        with pytest.raises(RuntimeError):
            await listener.serve()

    @pytest.mark.asyncio
    async def test_serve_reports_startup_and_signal(self, settings):
        started = []
        listener = Listener(FastAPI(), settings, server_class=FakeServer)
        listener.bind(on_started=lambda: started.append(True))

        received = await listener.serve()

        assert started == [True]
        assert received == signal.SIGINT


def test_inkwell_server_records_first_signal():
    server = InkwellServer(uvicorn.Config(FastAPI()))
    server.handle_exit(signal.SIGTERM, None)
    server.handle_exit(signal.SIGINT, None)

    assert server.received_signal == signal.SIGTERM
    assert server.should_exit


def test_capture_signals_installs_and_restores_handlers():
    server = InkwellServer(uvicorn.Config(FastAPI()))
    original = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}

    with server.capture_signals():
        assert signal.getsignal(signal.SIGINT) == server.handle_exit
        assert signal.getsignal(signal.SIGTERM) == server.handle_exit
        signal.raise_signal(signal.SIGTERM)

    assert server.received_signal == signal.SIGTERM
    assert server.should_exit
    for sig, handler in original.items():
        assert signal.getsignal(sig) == handler


@pytest.mark.asyncio
async def test_serves_http_over_unix_socket_until_interrupted(make_settings, tmp_path):
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"pong": True}

    path = tmp_path / "srv.sock"
    original_handler = signal.getsignal(signal.SIGINT)
    started = asyncio.Event()
    listener = Listener(app, make_settings(server_socket=str(path)))
    listener.bind(on_started=started.set)

    serving = asyncio.create_task(listener.serve())
    await asyncio.wait_for(started.wait(), timeout=10)

    transport = httpx.AsyncHTTPTransport(uds=str(path))
    async with httpx.AsyncClient(transport=transport, base_url="http://inkwell") as client:
        response = await client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"pong": True}

    os.kill(os.getpid(), signal.SIGINT)
    received = await asyncio.wait_for(serving, timeout=10)

    assert received == signal.SIGINT
    assert signal.getsignal(signal.SIGINT) == original_handler


class TestMessages:
    def test_development_startup_message(self, settings):
        message = startup_message(settings, resolve_listen_target(settings))
        assert "Inkwell is running in testing..." in message
        assert "Listening on 127.0.0.1:2368" in message
        assert "Url configured as: http://localhost:2368" in message
        assert "Ctrl+C to shut down" in message

    def test_production_startup_message(self, make_settings):
        settings = make_settings(environment="production", url="https://blog.example.com")
        message = startup_message(settings, resolve_listen_target(settings))
        assert "Your blog is now available on https://blog.example.com" in message
        assert "Listening on" not in message

    def test_socket_startup_message_names_path(self, make_settings, tmp_path):
        settings = make_settings(server_socket=str(tmp_path / "x.sock"))
        message = startup_message(settings, resolve_listen_target(settings))
        assert f"Listening on {Path(tmp_path / 'x.sock')}" in message

    def test_development_shutdown_reports_uptime(self, settings):
        message = shutdown_message(settings, 42)
        assert "Inkwell has shutdown" in message
        assert "Inkwell was running for 42 seconds" in message

    def test_uptime_never_negative(self, settings):
        assert "running for 0 seconds" in shutdown_message(settings, -3)

    def test_production_shutdown(self, make_settings):
        message = shutdown_message(make_settings(environment="production"), 42)
        assert "Your blog is now offline" in message
        assert "42" not in message
