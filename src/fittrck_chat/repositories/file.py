"""File-backed storage: one JSON file per key inside a directory."""

import asyncio
import contextlib
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from .base import Storage

logger = structlog.get_logger()

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage(Storage):
    """Durable storage that survives restarts.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a crash mid-write never leaves a truncated blob.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()
        logger.info("storage_initialized", backend="file", directory=str(self.directory))

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def _read(self, path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _write(self, path: Path, value: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}-")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(value)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    async def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        async with self._lock:
            return await asyncio.to_thread(self._read, path)

    async def set(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        async with self._lock:
            await asyncio.to_thread(self._write, path, value)
            logger.debug("blob_stored", key=key, size=len(value), path=str(path))
