"""Base storage interface."""

from abc import ABC, abstractmethod
from typing import Optional


class Storage(ABC):
    """Abstract key-value store holding one opaque blob per key."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under key, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Replace the blob stored under key."""
        pass
