"""Subsystems initialised during server startup.

- Settings store and in-memory settings cache
- Notifications shown in the admin interface
- Installation identifier (dbHash) and first-run bootstrapping
- Theme configuration
- Roles and permissions
- Outgoing mail
- Plugins
- Phrase translation
"""
from __future__ import annotations

from .settings_store import SettingsStore, DEFAULT_SETTINGS, decode_list, encode_list
from .settings_cache import SettingsCache
from .notifications import Notification, NotificationCenter
from .theme import ThemeConfig
from .permissions import PermissionsService, seed_fixtures
from .mailer import Mailer
from .plugins import PluginManager, PluginResult
from .i18n import Translator
from .first_run import resolve_db_hash, first_run_message, DB_HASH_KEY, FIRST_RUN_NOTIFICATION_ID

__all__ = [
    "SettingsStore",
    "DEFAULT_SETTINGS",
    "decode_list",
    "encode_list",
    "SettingsCache",
    "Notification",
    "NotificationCenter",
    "ThemeConfig",
    "PermissionsService",
    "seed_fixtures",
    "Mailer",
    "PluginManager",
    "PluginResult",
    "Translator",
    "resolve_db_hash",
    "first_run_message",
    "DB_HASH_KEY",
    "FIRST_RUN_NOTIFICATION_ID",
]
