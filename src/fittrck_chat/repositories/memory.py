"""In-memory storage implementation."""

import asyncio
from typing import Dict, Optional

import structlog

from .base import Storage

logger = structlog.get_logger()


class InMemoryStorage(Storage):
    """Process-local storage; contents are lost when the process exits."""

    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}
        self._lock = asyncio.Lock()
        logger.info("storage_initialized", backend="memory")

    async def get(self, key: str) -> Optional[bytes]:
        async with self._lock:
            return self._blobs.get(key)

    async def set(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._blobs[key] = bytes(value)
            logger.debug("blob_stored", key=key, size=len(value))
