# skullking_scorer/store.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Storage the history layer writes through.

    Values are JSON-compatible (dicts, lists, numbers, strings). A missing
    key reads as None.
    """

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore:
    """Dict-backed store, handy for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        # Hand out copies so callers cannot mutate stored values in place.
        return json.loads(json.dumps(value)) if value is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    All keys in a single JSON object on disk.

    Writes go to a temp file in the same directory and are then swapped in,
    so an interrupted write leaves the previous file intact.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = Lock()

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Could not read store at {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store at {self.path} is not a JSON object")
        return data

    def _write_all(self, data: Dict[str, Any]) -> None:
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise StoreError(f"Could not write store at {self.path}: {exc}") from exc

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)
        logger.debug("Wrote key %r to %s", key, self.path)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)
