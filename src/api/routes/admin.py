"""Admin interface pages."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from api.auth_deps import SESSION_ROLE_KEY
from api.deps import get_context
from api.views import ADMIN_PREFIX

router = APIRouter()


@router.get(f"{ADMIN_PREFIX}", include_in_schema=False)
async def admin_redirect(ctx=Depends(get_context)) -> RedirectResponse:
    return RedirectResponse(f"{ctx.paths.subdir}{ADMIN_PREFIX}/", status_code=301)


@router.get(f"{ADMIN_PREFIX}/", response_class=HTMLResponse)
async def admin_index(request: Request, ctx=Depends(get_context)):
    # Notifications are only shown to a role that may browse them
    role = request.session.get(SESSION_ROLE_KEY)
    signed_in = bool(role) and ctx.permissions.can(role, "browse", "notification")
    return request.app.state.admin_view_engine.TemplateResponse(
        request,
        "default.html",
        {
            "blog": request.state.blog,
            "signed_in": signed_in,
            "notifications": [n.to_dict() for n in ctx.notifications.browse()] if signed_in else [],
            "mail_warning": ctx.mailer.state_message if signed_in else None,
        },
    )
