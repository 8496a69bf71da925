"""Plugin discovery, installation and activation.

Plugins are classes registered under the ``inkwell.plugins`` entry-point group.
Only the names listed in the ``activePlugins`` setting are loaded.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from core.exceptions import PluginError
from core.logging_config import get_logger
from services.settings_store import decode_list, encode_list

if TYPE_CHECKING:
    from services.settings_cache import SettingsCache

LOGGER = get_logger(__name__)

ENTRY_POINT_GROUP = "inkwell.plugins"


@dataclass
class PluginResult:
    """Outcome of plugin initialisation."""

    activated: List[str] = field(default_factory=list)
    installed: List[str] = field(default_factory=list)


def _discover() -> Dict[str, Callable[..., Any]]:
    return {ep.name: ep.load for ep in entry_points(group=ENTRY_POINT_GROUP)}


class PluginManager:
    """Loads active plugins and keeps ``installedPlugins`` in sync."""

    def __init__(
        self,
        settings_cache: "SettingsCache",
        discover: Optional[Callable[[], Dict[str, Callable[..., Any]]]] = None,
    ):
        self.settings_cache = settings_cache
        self.discover = discover or _discover
        self.active: Dict[str, Any] = {}

    def _instantiate(self, name: str, loaders: Dict[str, Callable[..., Any]], app_context: Any) -> Any:
        loader = loaders.get(name)
        if loader is None:
            raise PluginError(f"Plugin '{name}' is not installed in this environment")
        try:
            plugin_class = loader()
            return plugin_class(app_context)
        except Exception as exc:
            raise PluginError(f"Plugin '{name}' failed to load: {exc}") from exc

    async def init(self, app_context: Any = None) -> PluginResult:
        """
        Install newly activated plugins, then activate every active plugin.

        Plugin hooks may be plain functions or coroutines.
        """
        active_names = decode_list(self.settings_cache.get("activePlugins"))
        installed_names = decode_list(self.settings_cache.get("installedPlugins"))
        result = PluginResult()
        if not active_names:
            LOGGER.debug("No active plugins")
            return result

        loaders = self.discover()
        for name in active_names:
            plugin = self._instantiate(name, loaders, app_context)
            if name not in installed_names:
                await _call_hook(plugin, "install", name)
                installed_names.append(name)
                result.installed.append(name)
            await _call_hook(plugin, "activate", name)
            self.active[name] = plugin
            result.activated.append(name)

        if result.installed:
            self.settings_cache.edit({"installedPlugins": encode_list(installed_names)})

        LOGGER.info(
            "Plugins ready",
            extra={"extra_data": {"activated": result.activated, "installed": result.installed}},
        )
        return result


async def _call_hook(plugin: Any, hook: str, name: str) -> None:
    method = getattr(plugin, hook, None)
    if method is None:
        return
    try:
        outcome = method()
        if hasattr(outcome, "__await__"):
            await outcome
    except Exception as exc:
        raise PluginError(f"Plugin '{name}' failed during {hook}: {exc}") from exc


__all__ = ["PluginManager", "PluginResult", "ENTRY_POINT_GROUP"]
