"""FastAPI application factory and server configuration."""
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.auth_deps import LoginRateLimiter
from api.middleware import configure_middleware
from api.routes import admin, frontend, health, session, settings_api
from api.routes.settings_api import API_PREFIX
from api.views import create_admin_templates, create_theme_templates
from core.exceptions import (
    ConfigurationError,
    InkwellError,
    NoPermissionError,
    NotFoundError,
    ValidationError,
)
from core.logging_config import get_logger

if TYPE_CHECKING:
    from core.context import AppContext

LOGGER = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Create the bare FastAPI application.

    Returns:
        Application with global exception handlers only. Views, middleware
        and routes are attached by ``configure_app`` during startup.
    """
    from core import __version__

    application = FastAPI(
        title="Inkwell",
        description="Just a blogging platform",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )

    # -------------------------------------------------------------------------
    # Global Exception Handlers
    # -------------------------------------------------------------------------

    @application.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle missing records."""
        return JSONResponse(
            status_code=404,
            content={"error": "not_found", "message": str(exc)},
        )

    @application.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors."""
        LOGGER.warning(f"Validation error: {exc}", extra={"extra_data": {"path": request.url.path}})
        return JSONResponse(
            status_code=400,
            content={"error": "validation_error", "message": str(exc)},
        )

    @application.exception_handler(NoPermissionError)
    async def no_permission_handler(request: Request, exc: NoPermissionError) -> JSONResponse:
        """Handle permission failures."""
        return JSONResponse(
            status_code=403,
            content={"error": "no_permission", "message": str(exc)},
        )

    @application.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        """Handle configuration errors."""
        LOGGER.error(f"Configuration error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "configuration_error",
                "message": "Service misconfiguration",
                "detail": "Please contact the administrator.",
            },
        )

    @application.exception_handler(InkwellError)
    async def app_error_handler(request: Request, exc: InkwellError) -> JSONResponse:
        """Handle all other application errors."""
        LOGGER.error(f"Application error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "application_error", "message": str(exc)},
        )

    return application


def configure_app(ctx: "AppContext") -> FastAPI:
    """
    Attach view engines, middleware and routes to ``ctx.app``.

    Middleware is registered before any route so it wraps all of them.
    """
    application = ctx.app
    application.state.context = ctx

    # ## View engine
    application.state.view_engine = create_theme_templates(ctx)
    application.state.admin_view_engine = create_admin_templates(ctx)

    # ## Sign-in
    application.state.login_limiter = LoginRateLimiter(ctx.settings.admin_login_rate_limit)

    # ## Middleware
    configure_middleware(application, ctx, ctx.db_hash)

    # ## Routing
    subdir = ctx.paths.subdir
    application.include_router(settings_api.router, prefix=f"{subdir}{API_PREFIX}", tags=["API"])
    application.include_router(session.router, prefix=f"{subdir}{API_PREFIX}", tags=["Session"])
    application.include_router(health.router, prefix=f"{subdir}/health", tags=["Health"])
    application.include_router(admin.router, prefix=subdir, tags=["Admin"])
    application.include_router(frontend.router, prefix=subdir, tags=["Frontend"])

    LOGGER.info("Server configured", extra={"extra_data": {"subdir": subdir or "/"}})
    return application


__all__ = ["create_app", "configure_app"]
