"""Tests for plugin installation and activation."""
from __future__ import annotations

import pytest

from core.exceptions import PluginError
from services.plugins import PluginManager


class RecordingPlugin:
    calls = []

    def __init__(self, app_context):
        self.app_context = app_context

    def install(self):
        RecordingPlugin.calls.append("install")

    async def activate(self):
        RecordingPlugin.calls.append("activate")


class ExplodingPlugin:
    def __init__(self, app_context):
        pass

    def activate(self):
        raise RuntimeError("kaboom")


@pytest.fixture(autouse=True)
def reset_calls():
    RecordingPlugin.calls = []


def _manager(ctx, **plugins):
    return PluginManager(
        ctx.settings_cache,
        discover=lambda: {name: (lambda cls=cls: cls) for name, cls in plugins.items()},
    )


@pytest.mark.asyncio
async def test_no_active_plugins(seeded_ctx):
    manager = _manager(seeded_ctx)
    result = await manager.init(seeded_ctx)

    assert result.activated == []
    assert manager.active == {}


@pytest.mark.asyncio
async def test_new_plugin_is_installed_then_activated(seeded_ctx):
    seeded_ctx.settings_cache.edit({"activePlugins": '["recorder"]'})
    manager = _manager(seeded_ctx, recorder=RecordingPlugin)

    result = await manager.init(seeded_ctx)

    assert RecordingPlugin.calls == ["install", "activate"]
    assert result.installed == ["recorder"]
    assert manager.active["recorder"].app_context is seeded_ctx
    assert seeded_ctx.settings_store.read("installedPlugins").value == '["recorder"]'


@pytest.mark.asyncio
async def test_installed_plugin_is_only_activated(seeded_ctx):
    seeded_ctx.settings_cache.edit({
        "activePlugins": '["recorder"]',
        "installedPlugins": '["recorder"]',
    })
    result = await _manager(seeded_ctx, recorder=RecordingPlugin).init(seeded_ctx)

    assert RecordingPlugin.calls == ["activate"]
    assert result.installed == []


@pytest.mark.asyncio
async def test_missing_plugin_fails(seeded_ctx):
    seeded_ctx.settings_cache.edit({"activePlugins": '["ghostly"]'})
    with pytest.raises(PluginError, match="ghostly"):
        await _manager(seeded_ctx).init(seeded_ctx)


@pytest.mark.asyncio
async def test_hook_failure_is_wrapped(seeded_ctx):
    seeded_ctx.settings_cache.edit({
        "activePlugins": '["boom"]',
        "installedPlugins": '["boom"]',
    })
    with pytest.raises(PluginError, match="activate"):
        await _manager(seeded_ctx, boom=ExplodingPlugin).init(seeded_ctx)
