"""Request dependencies for FastAPI routes."""
from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from core.context import AppContext


def get_context(request: Request) -> "AppContext":
    """
    FastAPI dependency that provides the application context.

    Raises:
        ConfigurationError: If the server was not configured by the startup sequence.
    """
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise ConfigurationError("Application context is not configured")
    return ctx


__all__ = ["get_context"]
