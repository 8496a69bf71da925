"""Public blog pages rendered with the active theme."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from api.deps import get_context

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def homepage(request: Request, ctx=Depends(get_context)):
    return request.app.state.view_engine.TemplateResponse(
        request,
        "index.html",
        {
            "blog": request.state.blog,
            "posts_per_page": int(ctx.settings_cache.get("postsPerPage") or 6),
        },
    )
