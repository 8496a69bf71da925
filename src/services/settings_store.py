"""Persisted settings: read, add, edit and default population."""
from __future__ import annotations

import json
from typing import Dict, List, Optional

from sqlalchemy import select

from core.db import Database
from core.exceptions import NotFoundError
from core.logging_config import get_logger
from core.models import Setting, SettingType

LOGGER = get_logger(__name__)


# Values are stored as text; lists are JSON encoded.
DEFAULT_SETTINGS: Dict[str, Dict[str, str]] = {
    "databaseVersion": {"value": "001", "type": SettingType.CORE.value},
    "title": {"value": "Inkwell", "type": SettingType.BLOG.value},
    "description": {"value": "Just a blogging platform.", "type": SettingType.BLOG.value},
    "email": {"value": "", "type": SettingType.BLOG.value},
    "logo": {"value": "", "type": SettingType.BLOG.value},
    "cover": {"value": "", "type": SettingType.BLOG.value},
    "defaultLang": {"value": "en_US", "type": SettingType.BLOG.value},
    "postsPerPage": {"value": "6", "type": SettingType.BLOG.value},
    "forceI18n": {"value": "true", "type": SettingType.BLOG.value},
    "permalinks": {"value": "/:slug/", "type": SettingType.BLOG.value},
    "activeTheme": {"value": "casper", "type": SettingType.THEME.value},
    "activePlugins": {"value": "[]", "type": SettingType.PLUGIN.value},
    "installedPlugins": {"value": "[]", "type": SettingType.PLUGIN.value},
}


class SettingsStore:
    """
    Model-layer access to the settings table.

    Every call opens its own session, so the store is safe to use from the
    worker threads that startup stages run in.
    """

    def __init__(self, database: Database):
        self.database = database

    def read(self, key: str) -> Setting:
        """
        Read one setting.

        Raises:
            NotFoundError: If no row exists for ``key``.
        """
        with self.database.readonly_session() as session:
            setting = session.scalar(select(Setting).where(Setting.key == key))
            if setting is None:
                raise NotFoundError(f"Setting '{key}' not found")
            session.expunge(setting)
            return setting

    def browse(self, setting_type: Optional[str] = None) -> List[Setting]:
        with self.database.readonly_session() as session:
            query = select(Setting).order_by(Setting.key)
            if setting_type:
                query = query.where(Setting.type == setting_type)
            settings = list(session.scalars(query))
            for setting in settings:
                session.expunge(setting)
            return settings

    def add(self, key: str, value: Optional[str], setting_type: str = SettingType.CORE.value) -> Setting:
        """
        Insert a new setting.

        Raises:
            sqlalchemy.exc.IntegrityError: If ``key`` already exists.
        """
        with self.database.session() as session:
            setting = Setting(key=key, value=value, type=setting_type)
            session.add(setting)
            session.flush()
            session.refresh(setting)
            session.expunge(setting)
        LOGGER.debug("Added setting %s", key)
        return setting

    def edit(self, values: Dict[str, Optional[str]]) -> List[Setting]:
        """
        Update existing settings.

        Raises:
            NotFoundError: If any key does not exist. Nothing is written in that case.
        """
        with self.database.session() as session:
            rows = {
                s.key: s
                for s in session.scalars(select(Setting).where(Setting.key.in_(list(values))))
            }
            missing = sorted(set(values) - set(rows))
            if missing:
                raise NotFoundError(f"Unknown settings: {', '.join(missing)}")
            for key, value in values.items():
                rows[key].value = value
            session.flush()
            for setting in rows.values():
                session.refresh(setting)
                session.expunge(setting)
            return list(rows.values())

    def populate_defaults(self) -> List[str]:
        """
        Insert every default setting that does not exist yet.

        Returns:
            Keys that were inserted.
        """
        with self.database.session() as session:
            existing = set(session.scalars(select(Setting.key)))
            added = []
            for key, default in DEFAULT_SETTINGS.items():
                if key in existing:
                    continue
                session.add(Setting(key=key, value=default["value"], type=default["type"]))
                added.append(key)

        if added:
            LOGGER.info("Populated %d default settings", len(added))
        return added


def decode_list(value: Optional[str]) -> List[str]:
    """Decode a JSON list setting, tolerating empty values."""
    if not value:
        return []
    decoded = json.loads(value)
    if not isinstance(decoded, list):
        raise ValueError(f"Expected a JSON list, got {type(decoded).__name__}")
    return [str(item) for item in decoded]


def encode_list(values: List[str]) -> str:
    return json.dumps(sorted(set(values)))


__all__ = ["SettingsStore", "DEFAULT_SETTINGS", "decode_list", "encode_list"]
