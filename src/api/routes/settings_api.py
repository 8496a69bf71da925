"""JSON API for settings and notifications.

Reads of blog, theme and plugin settings are public. ``core`` settings such as
the installation identifier are never readable or writable here. Every write
requires a signed-in role with the matching permission.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.auth_deps import require_permission
from api.deps import get_context
from core.exceptions import NotFoundError
from core.logging_config import get_logger
from core.models import SettingType

router = APIRouter()
LOGGER = get_logger(__name__)

API_PREFIX = "/inkwell/api/v0.1"

HIDDEN_SETTING_TYPES = frozenset({SettingType.CORE.value})


class NotificationIn(BaseModel):
    message: str = Field(..., min_length=1)
    type: str = "info"
    status: str = "passive"
    id: Optional[str] = None


def _is_exposed(ctx, key: str) -> bool:
    return ctx.settings_cache.type_of(key) not in HIDDEN_SETTING_TYPES


# =============================================================================
# Settings
# =============================================================================


@router.get("/settings/")
async def browse_settings(
    type: Optional[str] = Query(default=None, description="Comma separated setting types"),
    ctx=Depends(get_context),
) -> Dict[str, Any]:
    if not type:
        return {k: v for k, v in ctx.settings_cache.browse().items() if _is_exposed(ctx, k)}
    result: Dict[str, Any] = {}
    for setting_type in (t.strip() for t in type.split(",")):
        if setting_type in HIDDEN_SETTING_TYPES:
            continue
        result.update(ctx.settings_cache.browse(setting_type))
    return result


@router.get("/settings/{key}/")
async def read_setting(key: str, ctx=Depends(get_context)) -> Dict[str, Any]:
    if not _is_exposed(ctx, key):
        raise NotFoundError(f"Setting '{key}' not found")
    return {"key": key, "value": ctx.settings_cache.read(key)}


@router.put("/settings/")
async def edit_settings(
    values: Dict[str, Optional[str]],
    ctx=Depends(get_context),
    role: str = Depends(require_permission("edit", "setting")),
) -> Dict[str, Any]:
    hidden = sorted(k for k in values if not _is_exposed(ctx, k))
    if hidden:
        raise NotFoundError(f"Unknown settings: {', '.join(hidden)}")
    updated = ctx.settings_cache.edit(values)
    ctx.theme.update(ctx.settings_cache, ctx.settings.url)
    LOGGER.info("Settings updated by %s: %s", role, ", ".join(sorted(updated)))
    return updated


# =============================================================================
# Notifications
# =============================================================================


@router.get("/notifications/", dependencies=[Depends(require_permission("browse", "notification"))])
async def browse_notifications(ctx=Depends(get_context)) -> List[Dict[str, Any]]:
    return [n.to_dict() for n in ctx.notifications.browse()]


@router.post(
    "/notifications/",
    status_code=201,
    dependencies=[Depends(require_permission("add", "notification"))],
)
async def add_notification(body: NotificationIn, ctx=Depends(get_context)) -> Dict[str, Any]:
    # Messages from the API are plain text; only trusted internal messages render as HTML
    notification = ctx.notifications.add(
        message=body.message, type=body.type, status=body.status, id=body.id
    )
    return notification.to_dict()


@router.delete(
    "/notifications/{notification_id}",
    dependencies=[Depends(require_permission("destroy", "notification"))],
)
async def destroy_notification(notification_id: str, ctx=Depends(get_context)) -> Dict[str, Any]:
    return ctx.notifications.destroy(notification_id).to_dict()
