"""Health check routes."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.deps import get_context
from core.logging_config import get_logger
from core.utils import utcnow

router = APIRouter()
LOGGER = get_logger(__name__)


@router.get("/")
async def health_check(ctx=Depends(get_context)) -> Dict[str, Any]:
    """Basic health check - always returns OK once the server is configured."""
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "environment": ctx.environment,
        "uptime_seconds": ctx.uptime.seconds(),
    }


@router.get("/detailed")
async def detailed_health_check(ctx=Depends(get_context)) -> Dict[str, Any]:
    """Detailed health check including database, mail and plugins."""
    status = "healthy"
    checks: Dict[str, Any] = {}

    if ctx.database.check_connection():
        checks["database"] = {"status": "healthy", "connected": True}
    else:
        status = "unhealthy"
        checks["database"] = {"status": "unhealthy", "connected": False}

    checks["mail"] = {"transport": ctx.mailer.transport, "enabled": ctx.mailer.enabled}
    checks["plugins"] = {"active": sorted(ctx.plugins.active)}
    checks["theme"] = {"active": ctx.settings_cache.get("activeTheme")}

    return {
        "status": status,
        "timestamp": utcnow().isoformat(),
        "checks": checks,
    }
