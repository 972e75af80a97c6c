"""Durable key-value preference storage.

A single JSON object on disk holding string values: the UI theme, the
legacy ``isAuthenticated`` flag and the persisted session. The file is read
once when the store is created and rewritten on every change.
"""

from __future__ import annotations

import enum
import json
import logging
import os
from pathlib import Path

from avtokontrol._constants import PREF_THEME

_logger = logging.getLogger(__name__)


class Theme(enum.StrEnum):
    LIGHT = "light"
    DARK = "dark"

    def toggle(self) -> Theme:
        return Theme.DARK if self is Theme.LIGHT else Theme.LIGHT


class PreferenceStore:
    """String preferences persisted to a JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._values: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Preference file %s is corrupt, starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._values, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        if self._values.get(key) == value:
            return
        self._values[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._flush()

    def __contains__(self, key: object) -> bool:
        return key in self._values

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def get_theme(self, default: Theme = Theme.LIGHT) -> Theme:
        raw = self._values.get(PREF_THEME)
        try:
            return Theme(raw) if raw else default
        except ValueError:
            return default

    def set_theme(self, theme: Theme) -> None:
        self.set(PREF_THEME, theme.value)
