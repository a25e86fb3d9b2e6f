"""
File-backed key-value store for user defaults.

The whole store is one JSON object on disk.  Every `set` rewrites it
atomically (temp file + rename) so a crash never leaves a half-written file;
last write wins, single writer per process.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

log = structlog.get_logger(__name__)


def atomic_write_text(path: str | Path, content: str) -> Path:
    """Write *content* to *path* via a sibling temp file and rename."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".tmp")
    tmp.write_text(content, encoding="utf-8")
    tmp.replace(target)
    return target


class JsonSettingsStore:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._data: dict[str, Any] = self._load()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()
        log.debug("store.set", key=key, path=str(self.path))

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        self._flush()
        return True

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as exc:
            log.warning("store.corrupt_file", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            log.warning("store.unexpected_root", path=str(self.path), root=type(data).__name__)
            return {}
        return data

    def _flush(self) -> None:
        atomic_write_text(self.path, json.dumps(self._data, indent=2, sort_keys=True))
