"""
Key-value stores for small JSON-compatible records.

Everything the engine persists between sessions (best networks, score
history, per-game settings) is a handful of JSON values under string
keys. Two backends are provided:
- MemoryStore: a plain dict, for tests and throwaway sessions
- JsonFileStore: one JSON document on disk, rewritten atomically
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


def _json_copy(key: str, value: Any) -> Any:
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as e:
        raise StorageError(f"Value for '{key}' is not JSON serializable: {e}") from e


class KeyValueStore(ABC):
    """Interface shared by every store backend."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys."""

    def __contains__(self, key: str) -> bool:
        return key in self.keys()


class MemoryStore(KeyValueStore):
    """In-process store backed by a dict."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return _json_copy(key, self._data[key])

    def set(self, key: str, value: Any) -> None:
        # Stored values never share references with the caller
        self._data[key] = _json_copy(key, value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """
    Store persisted as a single JSON object on disk.

    The file is read once on construction and rewritten in full on
    every change, through a temporary file and os.replace, so a crash
    never leaves a half-written document behind.

    Example:
        store = JsonFileStore('~/.neuroarcade/store.json')
        store.set('gameSettings', {'flappy': {'population_size': 200}})
    """

    def __init__(self, path: str):
        """
        Args:
            path: Location of the JSON document. Created on first write.

        Raises:
            StorageError: If the file exists but is not a JSON object.
        """
        self.path = Path(path).expanduser()
        self._data = self._read()

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Store {self.path} does not contain a JSON object")
        return data

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        logger.debug("Wrote %d keys to %s", len(self._data), self.path)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return _json_copy(key, self._data[key])

    def set(self, key: str, value: Any) -> None:
        """
        Raises:
            StorageError: If value is not JSON serializable. The store
                is left unchanged.
        """
        new_value = _json_copy(key, value)
        missing = object()
        old_value = self._data.get(key, missing)
        self._data[key] = new_value
        try:
            self._write()
        except BaseException:
            if old_value is missing:
                del self._data[key]
            else:
                self._data[key] = old_value
            raise

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._write()

    def keys(self) -> List[str]:
        return list(self._data)
