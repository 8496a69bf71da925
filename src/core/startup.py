"""Ordered startup of the server.

The sequence is plain data: a list of stages, some of which join several
independent stages that run concurrently. ``StartupSequence.run`` executes them
in order and stops at the first failure.
"""
from __future__ import annotations

import asyncio
import enum
import mimetypes
import platform
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from core.bootstrap import (
    required_python,
    runtime_supported,
    unsupported_runtime_message,
    validate_or_raise,
)
from core.exceptions import StartupError, UnsupportedRuntimeError
from core.logging_config import get_context_logger, get_logger, log_stage
from core.server import Listener, shutdown_message, startup_message
from core.utils import Uptime
from services.first_run import resolve_db_hash
from services.permissions import seed_fixtures

if TYPE_CHECKING:
    from core.context import AppContext

LOGGER = get_logger(__name__)

StageFunc = Callable[["AppContext"], Awaitable[Any]]


class StartupStatus(str, enum.Enum):
    READY = "ready"
    STOPPED = "stopped"
    UNSUPPORTED_RUNTIME = "unsupported_runtime"
    FAILED = "failed"


@dataclass(frozen=True)
class StartupResult:
    """Outcome of starting (and eventually stopping) the server."""

    status: StartupStatus
    stage: Optional[str] = None
    error: Optional[BaseException] = None
    signal: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status in (StartupStatus.READY, StartupStatus.STOPPED)

    @property
    def exit_code(self) -> int:
        return 1 if self.status is StartupStatus.FAILED else 0

    @classmethod
    def failed(cls, stage: str, error: BaseException) -> "StartupResult":
        return cls(StartupStatus.FAILED, stage=stage, error=error)


@dataclass(frozen=True)
class Stage:
    """One named asynchronous step."""

    name: str
    run: StageFunc

    async def execute(self, ctx: "AppContext") -> Any:
        return await self.run(ctx)


@dataclass(frozen=True)
class JoinStage:
    """Runs independent stages together and waits for all of them."""

    name: str
    stages: Tuple[Stage, ...]

    async def execute(self, ctx: "AppContext") -> List[Any]:
        return list(await asyncio.gather(*(stage.execute(ctx) for stage in self.stages)))


AnyStage = Union[Stage, JoinStage]


class StartupSequence:
    """Executes stages in order, fail-fast."""

    def __init__(self, stages: Sequence[AnyStage]):
        self.stages = list(stages)

    @property
    def names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    async def run(self, ctx: "AppContext") -> StartupResult:
        for stage in self.stages:
            stage_logger = get_context_logger(__name__, stage=stage.name, environment=ctx.environment)
            started = time.perf_counter()
            try:
                await stage.execute(ctx)
            except Exception as exc:
                log_stage(stage_logger, stage.name, False, (time.perf_counter() - started) * 1000)
                stage_logger.error("%s", StartupError(stage.name, exc), exc_info=exc)
                return StartupResult.failed(stage.name, exc)
            log_stage(stage_logger, stage.name, True, (time.perf_counter() - started) * 1000)
        return StartupResult(StartupStatus.READY)


# =============================================================================
# Stages
# =============================================================================


async def load_config(ctx: "AppContext") -> None:
    validate_or_raise(ctx.settings)


async def init_models(ctx: "AppContext") -> None:
    def _init() -> None:
        ctx.database.init_db()
        with ctx.database.session() as session:
            seed_fixtures(session)

    await asyncio.to_thread(_init)


async def update_paths(ctx: "AppContext") -> None:
    await asyncio.to_thread(ctx.paths.update_paths, ctx.settings.url)


async def populate_default_settings(ctx: "AppContext") -> None:
    await asyncio.to_thread(ctx.settings_store.populate_defaults)


async def init_settings_cache(ctx: "AppContext") -> None:
    await asyncio.to_thread(ctx.settings_cache.init)


async def update_theme(ctx: "AppContext") -> None:
    ctx.theme.update(ctx.settings_cache, ctx.settings.url)
    active = ctx.settings_cache.get("activeTheme")
    if active and active not in ctx.paths.available_themes:
        LOGGER.warning("The currently active theme '%s' is missing.", active)


async def init_db_hash(ctx: "AppContext") -> None:
    await asyncio.to_thread(resolve_db_hash, ctx)


async def init_permissions(ctx: "AppContext") -> None:
    await asyncio.to_thread(ctx.permissions.init)


async def init_mail(ctx: "AppContext") -> None:
    await asyncio.to_thread(ctx.mailer.init)


async def configure_server(ctx: "AppContext") -> None:
    from api.app import configure_app

    # Correct mime type for woff files served from themes
    mimetypes.add_type("application/font-woff", ".woff")
    configure_app(ctx)


async def init_plugins(ctx: "AppContext") -> None:
    await ctx.plugins.init(ctx)


def default_stages() -> List[AnyStage]:
    """The server startup order."""
    return [
        Stage("config", load_config),
        JoinStage("models+paths", (
            Stage("models", init_models),
            Stage("paths", update_paths),
        )),
        Stage("settings.defaults", populate_default_settings),
        Stage("settings.cache", init_settings_cache),
        Stage("theme", update_theme),
        JoinStage("dbhash+permissions", (
            Stage("dbhash", init_db_hash),
            Stage("permissions", init_permissions),
        )),
        Stage("mail", init_mail),
        Stage("server", configure_server),
        Stage("plugins", init_plugins),
    ]


# =============================================================================
# Entry point
# =============================================================================


async def start(
    ctx: "AppContext",
    sequence: Optional[StartupSequence] = None,
    listener: Optional[Listener] = None,
    python_version: Optional[str] = None,
    required_version: Optional[str] = None,
) -> StartupResult:
    """
    Initialise everything, check the runtime, then serve until shut down.

    Never exits the process; the returned result carries the exit code.
    """
    sequence = sequence or StartupSequence(default_stages())
    result = await sequence.run(ctx)
    if not result.ok:
        return result

    required = required_version or required_python()
    if not runtime_supported(python_version, required):
        running = python_version or platform.python_version()
        LOGGER.error(unsupported_runtime_message(running, required))
        return StartupResult(
            StartupStatus.UNSUPPORTED_RUNTIME,
            error=UnsupportedRuntimeError(running, required),
        )

    listener = listener or Listener(ctx.app, ctx.settings)
    try:
        listener.bind(on_started=lambda: LOGGER.info(startup_message(ctx.settings, listener.target)))
    except OSError as exc:
        LOGGER.error("Could not bind listener: %s", exc)
        return StartupResult.failed("listen", exc)

    ctx.uptime = Uptime()
    try:
        received = await listener.serve()
    except SystemExit as exc:
        # uvicorn exits when it cannot bind the TCP port
        LOGGER.error("Server exited during startup with code %s", exc.code)
        ctx.database.dispose()
        return StartupResult.failed("listen", exc)
    LOGGER.info(shutdown_message(ctx.settings, ctx.uptime.seconds()))
    ctx.database.dispose()
    return StartupResult(StartupStatus.STOPPED, signal=received)


__all__ = [
    "Stage",
    "JoinStage",
    "StartupSequence",
    "StartupResult",
    "StartupStatus",
    "default_stages",
    "start",
]
