"""Filesystem paths derived from configuration.

Paths are recomputed whenever the configured URL changes, and the available
themes and plugins are discovered by scanning the content directory.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List
from urllib.parse import urlparse

from core.logging_config import get_logger

LOGGER = get_logger(__name__)

CORE_PATH = Path(__file__).resolve().parent
ADMIN_VIEWS_PATH = CORE_PATH / "admin" / "views"
ADMIN_ASSETS_PATH = CORE_PATH / "admin" / "assets"


def _list_directories(root: Path) -> List[str]:
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir() and not p.name.startswith("."))


def _read_directory(root: Path) -> Dict[str, List[str]]:
    """Map each sub-directory to the files it holds, relative to that directory."""
    tree: Dict[str, List[str]] = {}
    for name in _list_directories(root):
        directory = root / name
        tree[name] = sorted(
            str(p.relative_to(directory)) for p in directory.rglob("*") if p.is_file()
        )
    return tree


@dataclass
class ContentPaths:
    """Resolved directories for one installation."""

    content_path: Path
    subdir: str = ""
    available_themes: Dict[str, List[str]] = field(default_factory=dict)
    available_plugins: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def themes_path(self) -> Path:
        return self.content_path / "themes"

    @property
    def plugins_path(self) -> Path:
        return self.content_path / "plugins"

    @property
    def images_path(self) -> Path:
        return self.content_path / "images"

    @property
    def data_path(self) -> Path:
        return self.content_path / "data"

    @property
    def admin_views(self) -> Path:
        return ADMIN_VIEWS_PATH

    @property
    def admin_assets(self) -> Path:
        return ADMIN_ASSETS_PATH

    def theme_path(self, theme: str) -> Path:
        return self.themes_path / theme

    def update_paths(self, url: str) -> "ContentPaths":
        """
        Recompute URL-dependent values and rescan themes and plugins.

        Args:
            url: The configured blog URL.

        Returns:
            self, for chaining.
        """
        self.subdir = urlparse(url).path.rstrip("/")
        self.available_themes = _read_directory(self.themes_path)
        self.available_plugins = _read_directory(self.plugins_path)
        LOGGER.debug(
            "Paths updated",
            extra={"extra_data": {
                "subdir": self.subdir,
                "themes": list(self.available_themes),
                "plugins": list(self.available_plugins),
            }},
        )
        return self

    def as_dict(self) -> Dict[str, str]:
        return {
            "subdir": self.subdir,
            "content": str(self.content_path),
            "themes": str(self.themes_path),
            "plugins": str(self.plugins_path),
            "images": str(self.images_path),
            "admin_views": str(self.admin_views),
        }


__all__ = ["ContentPaths", "ADMIN_VIEWS_PATH", "ADMIN_ASSETS_PATH"]
