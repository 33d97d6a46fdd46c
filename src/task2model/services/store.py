"""Durable key/blob store backing the catalog and embedding caches."""

import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Stores JSON-serializable blobs under short names."""

    @abstractmethod
    async def read(self, name: str) -> Optional[Any]:
        """Return the stored object, or None if absent or unreadable."""
        ...

    @abstractmethod
    async def write(self, name: str, value: Any) -> None:
        """Store an object, replacing any previous value."""
        ...


class JsonFileStore(BlobStore):
    """One JSON file per blob inside a cache directory.

    Writes of the same blob are serialized in call order, and each goes
    through its own temp file before replacing the target.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._locks: dict[str, asyncio.Lock] = {}

    def _path(self, name: str) -> Path:
        return self.directory / f"{name}.json"

    def _read_sync(self, name: str) -> Optional[Any]:
        path = self._path(name)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_sync(self, name: str, value: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(name)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f"{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def read(self, name: str) -> Optional[Any]:
        try:
            return await asyncio.to_thread(self._read_sync, name)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache blob {name}: {e}")
            return None

    async def write(self, name: str, value: Any) -> None:
        lock = self._locks.setdefault(name, asyncio.Lock())
        async with lock:
            await asyncio.to_thread(self._write_sync, name, value)
        logger.debug(f"Wrote cache blob {self._path(name)}")


class MemoryStore(BlobStore):
    """In-process store, used when no cache directory is wanted."""

    def __init__(self):
        self.blobs: dict[str, Any] = {}

    async def read(self, name: str) -> Optional[Any]:
        return self.blobs.get(name)

    async def write(self, name: str, value: Any) -> None:
        self.blobs[name] = value
