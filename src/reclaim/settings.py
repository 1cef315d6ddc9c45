"""Generic JSON-backed settings store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from reclaim.utils import APP_NAME, xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_FILE = "settings.json"

_MISSING = object()

DEFAULTS: dict[str, Any] = {
    "scan": {"storage_root": "/storage/emulated/0"},
    "storage": {"path": "/"},
    "memory": {"settle_seconds": 0.8},
}


class Settings:
    """Persistent settings backed by a JSON file.

    Uses dot-notation keys for nested access:
        settings.get("scan.storage_root")  # reads data["scan"]["storage_root"]
        settings.set("scan.storage_root", "/mnt/sdcard")  # writes + saves

    Keys missing from the file fall back to ``DEFAULTS``.
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / APP_NAME / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key.

        A value stored as JSON null is returned as None; only keys absent
        from both the file and DEFAULTS yield *default*.
        """
        value = _lookup(self._data, key)
        if value is _MISSING:
            value = _lookup(DEFAULTS, key)
        return default if value is _MISSING else value

    def __contains__(self, key: str) -> bool:
        return _lookup(self._data, key) is not _MISSING or _lookup(DEFAULTS, key) is not _MISSING

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-notation key and persist to disk."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    @property
    def storage_root(self) -> Path:
        return self._path_setting("scan.storage_root")

    @property
    def storage_path(self) -> Path:
        return self._path_setting("storage.path")

    def _path_setting(self, key: str) -> Path:
        value = self.get(key)
        if not isinstance(value, str) or not value:
            log.warning("Invalid %s in %s, using default", key, self._path)
            value = _lookup(DEFAULTS, key)
        return Path(value)

    @property
    def settle_seconds(self) -> float:
        try:
            return float(self.get("memory.settle_seconds"))
        except (TypeError, ValueError):
            log.warning("Invalid memory.settle_seconds in %s, using default", self._path)
            return float(DEFAULTS["memory"]["settle_seconds"])

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._data = data
        else:
            log.warning("Ignoring non-object settings in %s", self._path)

    def _save(self) -> None:
        """Persist settings to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self._path, e)


def _lookup(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node
