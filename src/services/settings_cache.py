"""In-memory settings cache backed by the settings store."""
from __future__ import annotations

import threading
from typing import Dict, Optional

from core.exceptions import NotFoundError
from core.logging_config import get_logger
from services.settings_store import SettingsStore

LOGGER = get_logger(__name__)


class SettingsCache:
    """
    Read-mostly view of every setting.

    ``init()`` must run once after defaults are populated; afterwards reads never
    touch the database and edits update both the store and the cache.
    """

    def __init__(self, store: SettingsStore):
        self.store = store
        self._values: Dict[str, Optional[str]] = {}
        self._types: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.initialized = False

    def init(self) -> Dict[str, Optional[str]]:
        """Load every persisted setting into memory."""
        settings = self.store.browse()
        with self._lock:
            self._values = {s.key: s.value for s in settings}
            self._types = {s.key: s.type for s in settings}
            self.initialized = True
        LOGGER.debug("Settings cache loaded with %d entries", len(settings))
        return dict(self._values)

    def read(self, key: str) -> Optional[str]:
        """
        Return a cached setting value.

        Raises:
            NotFoundError: If the key is not cached.
        """
        with self._lock:
            if key not in self._values:
                raise NotFoundError(f"Setting '{key}' not found")
            return self._values[key]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            return self._values.get(key, default)

    def type_of(self, key: str) -> Optional[str]:
        """The setting type of ``key``, or None when it is not cached."""
        with self._lock:
            return self._types.get(key)

    def browse(self, setting_type: Optional[str] = None) -> Dict[str, Optional[str]]:
        with self._lock:
            return {
                key: value
                for key, value in self._values.items()
                if setting_type is None or self._types.get(key) == setting_type
            }

    def edit(self, values: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
        """Persist ``values`` and refresh the cached copies."""
        updated = self.store.edit(values)
        with self._lock:
            for setting in updated:
                self._values[setting.key] = setting.value
                self._types[setting.key] = setting.type
        return {s.key: s.value for s in updated}

    def remember(self, key: str, value: Optional[str], setting_type: str) -> None:
        """Cache a value that was written directly through the store."""
        with self._lock:
            self._values[key] = value
            self._types[key] = setting_type


__all__ = ["SettingsCache"]
