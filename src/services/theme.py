"""Theme configuration derived from blog settings."""
from __future__ import annotations

from typing import Dict, Optional

from core.logging_config import get_logger

LOGGER = get_logger(__name__)

THEME_KEYS = ("title", "description", "logo", "cover")


class ThemeConfig:
    """Values exposed to theme templates as ``blog``."""

    def __init__(self):
        self.values: Dict[str, Optional[str]] = {}

    def update(self, settings_cache, url: str) -> Dict[str, Optional[str]]:
        """
        Copy the theme-facing blog settings out of the settings cache.

        The cache is passed in rather than imported to keep the dependency one-way.
        """
        values: Dict[str, Optional[str]] = {"url": url}
        for key in THEME_KEYS:
            values[key] = settings_cache.get(key)
        self.values = values
        LOGGER.debug("Theme config updated", extra={"extra_data": values})
        return dict(values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    def as_dict(self) -> Dict[str, Optional[str]]:
        return dict(self.values)
