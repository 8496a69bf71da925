"""Session authentication dependencies for FastAPI routes."""
from __future__ import annotations

import threading
import time
from collections import defaultdict
from typing import Callable, Dict, List

from fastapi import Depends, HTTPException, Request, status

from api.deps import get_context

SESSION_ROLE_KEY = "role"
LOGIN_RATE_WINDOW = 60  # seconds


class LoginRateLimiter:
    """In-memory sign-in attempt counter per client address."""

    def __init__(self, limit: int, window: float = LOGIN_RATE_WINDOW):
        self.limit = limit
        self.window = window
        self._attempts: Dict[str, List[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def check(self, client_ip: str) -> None:
        """Raise 429 if sign-in attempts exceed the limit."""
        now = time.monotonic()
        with self._lock:
            recent = [t for t in self._attempts[client_ip] if now - t < self.window]
            if len(recent) >= self.limit:
                self._attempts[client_ip] = recent
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"Too many sign-in attempts. Try again in {int(self.window)} seconds.",
                )
            recent.append(now)
            self._attempts[client_ip] = recent


def get_session_role(request: Request) -> str:
    """
    Return the role stored in the signed session cookie.

    Raises 401 if nobody is signed in.
    """
    role = request.session.get(SESSION_ROLE_KEY)
    if not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return role


def require_permission(action: str, object_type: str) -> Callable[..., str]:
    """Dependency factory: the signed-in role must be allowed ``action`` on ``object_type``."""

    def dependency(role: str = Depends(get_session_role), ctx=Depends(get_context)) -> str:
        ctx.permissions.ensure(role, action, object_type)
        return role

    return dependency


__all__ = ["LoginRateLimiter", "SESSION_ROLE_KEY", "get_session_role", "require_permission"]
