"""Listening endpoint selection, binding and serving with uvicorn."""
from __future__ import annotations

import contextlib
import os
import signal
import socket
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import uvicorn

from core.config import Settings
from core.logging_config import get_logger

LOGGER = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass(frozen=True)
class ListenTarget:
    """Either a Unix socket path or a TCP host/port pair."""

    socket_path: Optional[Path] = None
    host: Optional[str] = None
    port: Optional[int] = None

    @property
    def is_socket(self) -> bool:
        return self.socket_path is not None

    def describe(self) -> str:
        if self.is_socket:
            return str(self.socket_path)
        return f"{self.host}:{self.port}"


def resolve_listen_target(settings: Settings) -> ListenTarget:
    """
    Decide where to listen.

    A string socket option is used as-is; any other socket option selects
    ``<content>/<environment>.socket``; without one the server uses host:port.
    """
    if settings.uses_socket:
        option = settings.server_socket
        if isinstance(option, str):
            return ListenTarget(socket_path=Path(option))
        return ListenTarget(socket_path=settings.content_path / f"{settings.environment}.socket")
    return ListenTarget(host=settings.server_host, port=settings.server_port)


def remove_stale_socket(path: Path) -> bool:
    """Remove a leftover socket file. Returns True if one was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    LOGGER.debug("Removed stale socket %s", path)
    return True


def bind_unix_socket(path: Path, mode: int) -> socket.socket:
    path.parent.mkdir(parents=True, exist_ok=True)
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(str(path))
        os.chmod(path, mode)
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock


def startup_message(settings: Settings, target: ListenTarget) -> str:
    if settings.is_production:
        return (
            "Inkwell is running..."
            f"\nYour blog is now available on {settings.url}"
            "\nCtrl+C to shut down"
        )
    return (
        f"Inkwell is running in {settings.environment}..."
        f"\nListening on {target.describe()}"
        f"\nUrl configured as: {settings.url}"
        "\nCtrl+C to shut down"
    )


def shutdown_message(settings: Settings, uptime_seconds: int) -> str:
    if settings.is_production:
        return "\nInkwell has shut down\nYour blog is now offline"
    return f"\nInkwell has shutdown\nInkwell was running for {max(0, uptime_seconds)} seconds"


class InkwellServer(uvicorn.Server):
    """
    uvicorn server that reports startup and remembers the exit signal.

    Captured signals are not re-raised after shutdown; the caller logs the
    shutdown and chooses the exit code.
    """

    def __init__(self, config: uvicorn.Config, on_started: Optional[Callable[[], None]] = None):
        super().__init__(config)
        self.on_started = on_started
        self.received_signal: Optional[int] = None

    async def startup(self, sockets: Optional[List[socket.socket]] = None) -> None:
        await super().startup(sockets=sockets)
        if self.started and self.on_started is not None:
            self.on_started()

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original_handlers = {sig: signal.signal(sig, self.handle_exit) for sig in HANDLED_SIGNALS}
        try:
            yield
        finally:
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)

    def handle_exit(self, sig: int, frame) -> None:
        if self.received_signal is None:
            self.received_signal = sig
        super().handle_exit(sig, frame)


class Listener:
    """Binds the configured endpoint exactly once and serves the application."""

    def __init__(self, app, settings: Settings, server_class: type = InkwellServer):
        self.app = app
        self.settings = settings
        self.server_class = server_class
        self.server: Optional[InkwellServer] = None
        self.target: Optional[ListenTarget] = None
        self._sockets: Optional[List[socket.socket]] = None

    def bind(self, on_started: Optional[Callable[[], None]] = None) -> ListenTarget:
        """
        Prepare the endpoint. Socket mode removes a stale file, binds and chmods it here;
        TCP binding happens when uvicorn starts serving.
        """
        if self.server is not None:
            raise RuntimeError("Listener is already bound")

        target = resolve_listen_target(self.settings)
        if target.is_socket:
            remove_stale_socket(target.socket_path)
            self._sockets = [bind_unix_socket(target.socket_path, self.settings.socket_mode)]
            config = uvicorn.Config(self.app, uds=str(target.socket_path), log_config=None)
        else:
            config = uvicorn.Config(self.app, host=target.host, port=target.port, log_config=None)

        self.target = target
        self.server = self.server_class(config, on_started=on_started)
        return target

    async def serve(self) -> Optional[int]:
        """
        Serve until a shutdown signal arrives.

        Returns:
            The signal number that stopped the server, if any.
        """
        if self.server is None:
            raise RuntimeError("Listener.bind() must be called before serve()")
        await self.server.serve(sockets=self._sockets)
        return self.server.received_signal


__all__ = [
    "ListenTarget",
    "Listener",
    "InkwellServer",
    "resolve_listen_target",
    "remove_stale_socket",
    "bind_unix_socket",
    "startup_message",
    "shutdown_message",
]
