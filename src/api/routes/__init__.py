"""API route modules."""
from __future__ import annotations

from . import (
    admin,
    frontend,
    health,
    session,
    settings_api,
)

__all__ = [
    "admin",
    "frontend",
    "health",
    "session",
    "settings_api",
]
