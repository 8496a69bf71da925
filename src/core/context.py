"""Application context shared by every startup stage."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from fastapi import FastAPI

from core.config import Settings
from core.db import Database
from core.paths import ContentPaths
from core.utils import Uptime
from services.i18n import Translator
from services.mailer import Mailer
from services.notifications import NotificationCenter
from services.permissions import PermissionsService
from services.plugins import PluginManager
from services.settings_cache import SettingsCache
from services.settings_store import SettingsStore
from services.theme import ThemeConfig


@dataclass
class AppContext:
    """
    Everything the server needs, constructed once and passed explicitly.

    ``db_hash`` is unset until the first-run stage resolves it.
    """

    settings: Settings
    app: FastAPI
    database: Database
    paths: ContentPaths
    settings_store: SettingsStore
    settings_cache: SettingsCache
    notifications: NotificationCenter
    theme: ThemeConfig
    permissions: PermissionsService
    mailer: Mailer
    plugins: PluginManager
    translator: Translator
    db_hash: Optional[str] = None
    first_run: bool = False
    uptime: Uptime = field(default_factory=Uptime)

    @classmethod
    def create(
        cls,
        settings: Settings,
        app: Optional[FastAPI] = None,
        database: Optional[Database] = None,
    ) -> "AppContext":
        """Wire the default collaborators for ``settings``."""
        if app is None:
            from api.app import create_app
            app = create_app()
        database = database or Database.from_settings(settings)
        store = SettingsStore(database)
        cache = SettingsCache(store)
        return cls(
            settings=settings,
            app=app,
            database=database,
            paths=ContentPaths(content_path=settings.content_path),
            settings_store=store,
            settings_cache=cache,
            notifications=NotificationCenter(),
            theme=ThemeConfig(),
            permissions=PermissionsService(database),
            mailer=Mailer(settings),
            plugins=PluginManager(cache),
            translator=Translator(locale=settings.default_locale),
        )

    @property
    def environment(self) -> str:
        return self.settings.environment


__all__ = ["AppContext"]
