"""Key-value blob stores used to persist coordinate mappings."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

_LOGGER = logging.getLogger(__name__)


class MappingStore(Protocol):
    """Durable get/set-bytes backend."""

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes for key, or None if nothing is stored."""

    def set(self, key: str, data: bytes) -> None:
        """Store bytes under key, replacing any previous value."""


class MemoryMappingStore:
    """In-memory store, lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, data: bytes) -> None:
        self._data[key] = data


class FileMappingStore:
    """
    Store each key as a JSON file in a directory.

    The directory is created on first write. Writes go to a temporary file
    that then replaces the target, so readers never see a partial file.
    I/O errors are propagated to the caller.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            _LOGGER.debug("No stored data at %s", path)
            return None
        return path.read_bytes()

    def set(self, key: str, data: bytes) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as tmp_file:
                tmp_file.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        _LOGGER.debug("Wrote %d bytes to %s", len(data), path)
