"""Middleware and static mounts, attached before any route."""
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from api.views import ADMIN_PREFIX
from core.exceptions import ConfigurationError
from core.logging_config import get_logger

if TYPE_CHECKING:
    from core.context import AppContext

LOGGER = get_logger(__name__)

SESSION_COOKIE = "inkwell-admin-session"


def configure_middleware(app: FastAPI, ctx: "AppContext", db_hash: str) -> None:
    """
    Attach middleware and static file mounts.

    ``db_hash`` signs the session cookie, so it must be resolved before this runs.
    """
    if not db_hash:
        raise ConfigurationError("dbHash must be resolved before middleware is configured")

    subdir = ctx.paths.subdir

    app.add_middleware(
        SessionMiddleware,
        secret_key=db_hash,
        session_cookie=SESSION_COOKIE,
        https_only=ctx.settings.url.startswith("https://"),
        same_site="lax",
    )

    @app.middleware("http")
    async def blog_context(request: Request, call_next):
        request.state.blog = ctx.theme.as_dict()
        response = await call_next(request)
        if not ctx.settings.is_production:
            response.headers["X-Inkwell-Environment"] = ctx.environment
        return response

    active = ctx.settings_cache.get("activeTheme") or "casper"
    app.mount(
        f"{subdir}/content/images",
        StaticFiles(directory=ctx.paths.images_path, check_dir=False),
        name="images",
    )
    app.mount(
        f"{subdir}{ADMIN_PREFIX}/assets",
        StaticFiles(directory=ctx.paths.admin_assets, check_dir=False),
        name="admin-assets",
    )
    app.mount(
        f"{subdir}/assets",
        StaticFiles(directory=ctx.paths.theme_path(active) / "assets", check_dir=False),
        name="theme-assets",
    )
    LOGGER.debug("Middleware configured", extra={"extra_data": {"subdir": subdir, "theme": active}})


__all__ = ["configure_middleware", "SESSION_COOKIE"]
