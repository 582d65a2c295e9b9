"""
Local key-value storage.

String keys to string values, like a browser's localStorage. When a path is
given every write is flushed to a JSON file so values survive restarts.
"""

import json
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class LocalStorage:
    """Persistent string key-value store."""

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path) if path else None
        self._lock = Lock()
        self._data: Dict[str, str] = self._read()

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def set_items(self, values: Dict[str, str]) -> None:
        """Write several keys in a single flush."""
        with self._lock:
            self._data.update(values)
            self._flush()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._flush()

    def keys(self):
        return list(self._data.keys())

    def _read(self) -> Dict[str, str]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read local storage at {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self._path)
