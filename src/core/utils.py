"""Core utility functions."""
from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Get current UTC datetime with timezone info. Always use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def generate_unique_key() -> str:
    """Generate a random UUID4 string in canonical form."""
    return str(uuid.uuid4())


class Uptime:
    """Monotonic stopwatch started when the process begins serving."""

    def __init__(self):
        self.started = time.monotonic()

    def seconds(self) -> int:
        """Whole seconds since start, never negative."""
        return max(0, round(time.monotonic() - self.started))


__all__ = [
    "utcnow",
    "generate_unique_key",
    "Uptime",
]
