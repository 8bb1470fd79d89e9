"""Durable key-value stores for projects and settings.

Values are JSON-encoded strings, one per key. The repository only relies on
``get``/``set``/``clear``, so any object with those methods can stand in.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

from constants import PROJECTS_KEY, SETTINGS_KEY

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the durable store cannot be read or written."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    """In-process store, used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class JsonFileStore:
    """One ``<key>.json`` file per key inside a data directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written value.
    """

    suffix = ".json"

    def __init__(self, directory, keys=(PROJECTS_KEY, SETTINGS_KEY)):
        self.directory = Path(directory)
        # clear() only removes these; other files in the directory are left alone
        self.keys = tuple(keys)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.suffix}"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Could not read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Could not write {path}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def clear(self) -> None:
        try:
            for key in self.keys:
                self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not clear {self.directory}: {exc}") from exc
        logger.info("Cleared %s from %s", ", ".join(self.keys), self.directory)
