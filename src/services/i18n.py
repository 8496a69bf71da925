"""Phrase translation for templates."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Mapping, Optional

from core.logging_config import get_logger

LOGGER = get_logger(__name__)

_PLACEHOLDER = re.compile(r"%\{(\w+)\}")


class Translator:
    """
    Looks up phrases by key and interpolates ``%{name}`` placeholders.

    Unknown keys are returned unchanged so that missing translations stay visible.
    """

    def __init__(self, locale: str = "en", phrases: Optional[Mapping[str, str]] = None):
        self.locale = locale
        self.phrases: Dict[str, str] = dict(phrases or {})

    def extend(self, phrases: Mapping[str, str]) -> None:
        self.phrases.update(phrases)

    def load(self, path: Path) -> int:
        """Merge phrases from a ``<locale>.json`` file. Returns the number loaded."""
        if not path.is_file():
            LOGGER.debug("No phrase file at %s", path)
            return 0
        phrases = json.loads(path.read_text(encoding="utf-8"))
        self.extend(phrases)
        return len(phrases)

    def t(self, key: str, **options: object) -> str:
        phrase = self.phrases.get(key, key)
        return _PLACEHOLDER.sub(
            lambda m: str(options.get(m.group(1), m.group(0))),
            phrase,
        )

    __call__ = t
