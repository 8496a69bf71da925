"""Admin sign-in and sign-out."""
from __future__ import annotations

import hmac
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from api.auth_deps import SESSION_ROLE_KEY
from api.deps import get_context
from core.logging_config import get_logger
from services.permissions import ADMINISTRATOR

router = APIRouter()
LOGGER = get_logger(__name__)


class SigninRequest(BaseModel):
    password: str = Field(..., min_length=1)


@router.post("/session/")
async def signin(body: SigninRequest, request: Request, ctx=Depends(get_context)) -> Dict[str, Any]:
    """
    Start an Administrator session.

    Rate limited per client address.
    """
    client_ip = request.client.host if request.client else "unknown"
    request.app.state.login_limiter.check(client_ip)

    expected = ctx.settings.admin_password
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sign-in is disabled. Set ADMIN_PASSWORD to enable it.",
        )
    if not hmac.compare_digest(body.password.encode(), expected.encode()):
        LOGGER.warning("Failed admin sign-in from %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password",
        )

    request.session[SESSION_ROLE_KEY] = ADMINISTRATOR
    LOGGER.info("Admin signed in from %s", client_ip)
    return {"role": ADMINISTRATOR}


@router.delete("/session/")
async def signout(request: Request) -> Dict[str, Any]:
    request.session.clear()
    return {"signed_out": True}
