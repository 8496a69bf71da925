"""View engines for the active theme and the admin interface."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Union

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.exceptions import ThemeError
from core.logging_config import get_logger

if TYPE_CHECKING:
    from core.context import AppContext

LOGGER = get_logger(__name__)

ADMIN_PREFIX = "/inkwell"


def _environment(search_path: List[Path]) -> Environment:
    return Environment(
        loader=FileSystemLoader([str(p) for p in search_path]),
        autoescape=select_autoescape(["html", "xml"]),
    )


def format_date(value: Optional[Union[datetime, str]], fmt: str = "%d %b %Y") -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime(fmt)


def load_core_helpers(ctx: "AppContext", env: Environment, assets_prefix: str) -> None:
    """Register the helpers every template can use."""
    subdir = ctx.paths.subdir

    def asset(path: str) -> str:
        return f"{subdir}{assets_prefix}/{path.lstrip('/')}"

    def url(path: str = "/", absolute: bool = False) -> str:
        relative = f"{subdir}/{path.lstrip('/')}"
        return f"{ctx.settings.url.rstrip('/')}/{path.lstrip('/')}" if absolute else relative

    env.globals.update(
        asset=asset,
        url=url,
        t=ctx.translator.t,
        environment=ctx.environment,
    )
    env.filters["date"] = format_date


def load_theme_phrases(ctx: "AppContext", theme_path: Path) -> int:
    """
    Merge the theme's ``locales/<locale>.json`` phrases into the translator.

    Raises:
        ThemeError: If the phrase file exists but is not valid JSON.
    """
    phrase_file = theme_path / "locales" / f"{ctx.translator.locale}.json"
    try:
        return ctx.translator.load(phrase_file)
    except ValueError as exc:
        raise ThemeError(f"Invalid phrase file {phrase_file}: {exc}") from exc


def create_theme_templates(ctx: "AppContext") -> Jinja2Templates:
    active = ctx.settings_cache.get("activeTheme") or "casper"
    theme_path = ctx.paths.theme_path(active)
    load_theme_phrases(ctx, theme_path)
    env = _environment([theme_path, theme_path / "partials"])
    load_core_helpers(ctx, env, "/assets")
    LOGGER.debug("Theme view engine using %s", theme_path)
    return Jinja2Templates(env=env)


def create_admin_templates(ctx: "AppContext") -> Jinja2Templates:
    views = ctx.paths.admin_views
    env = _environment([views, views / "partials"])
    load_core_helpers(ctx, env, f"{ADMIN_PREFIX}/assets")
    return Jinja2Templates(env=env)


__all__ = [
    "create_theme_templates",
    "create_admin_templates",
    "load_core_helpers",
    "load_theme_phrases",
    "format_date",
    "ADMIN_PREFIX",
]
