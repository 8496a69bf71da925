"""Pytest configuration and fixtures."""
from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Set test environment
os.environ.setdefault("ENVIRONMENT", "testing")

from core.config import Settings
from core.context import AppContext
from core.db import Database

THEME_SOURCE = Path(__file__).parent.parent / "content" / "themes" / "casper"


@pytest.fixture
def content_dir(tmp_path) -> Path:
    """A content directory holding the default theme."""
    content = tmp_path / "content"
    for name in ("plugins", "images", "data"):
        (content / name).mkdir(parents=True)
    shutil.copytree(THEME_SOURCE, content / "themes" / "casper")
    return content


@pytest.fixture
def make_settings(content_dir):
    """Factory for settings rooted in the temporary content directory."""

    def _make(**overrides) -> Settings:
        values = {
            "environment": "testing",
            "url": "http://localhost:2368",
            "content_path": content_dir,
            "database_url": f"sqlite:///{(content_dir / 'data' / 'inkwell-test.db').as_posix()}",
            "sendmail_path": content_dir / "no-sendmail",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def database(settings):
    """
    A file-backed SQLite database.

    Startup stages run in worker threads, so every session gets its own connection.
    """
    db = Database(settings.database_url)
    yield db
    db.dispose()


@pytest.fixture
def ctx(settings, database) -> AppContext:
    """An application context that has not been started."""
    return AppContext.create(settings, database=database)


@pytest.fixture
def seeded_ctx(ctx) -> AppContext:
    """Context whose tables, defaults and settings cache are ready."""
    from services.permissions import seed_fixtures

    ctx.database.init_db()
    with ctx.database.session() as session:
        seed_fixtures(session)
    ctx.paths.update_paths(ctx.settings.url)
    ctx.settings_store.populate_defaults()
    ctx.settings_cache.init()
    return ctx
