"""Durable storage for the user's profile."""

import structlog
from pydantic import ValidationError

from ..domain.models import UserContext
from .base import Storage

logger = structlog.get_logger()

PROFILE_KEY = "UserProfile"


class ProfileStore:
    """Loads and saves a single UserContext; failures never propagate."""

    def __init__(self, storage: Storage, key: str = PROFILE_KEY) -> None:
        self._storage = storage
        self._key = key

    async def load(self) -> UserContext:
        try:
            data = await self._storage.get(self._key)
        except Exception as e:
            logger.error("profile_load_failed", error=str(e))
            return UserContext()

        if data is None:
            return UserContext()

        try:
            return UserContext.model_validate_json(data)
        except ValidationError as e:
            logger.error("profile_decode_failed", error=str(e))
            return UserContext()

    async def save(self, profile: UserContext) -> None:
        try:
            await self._storage.set(self._key, profile.model_dump_json(by_alias=True).encode())
            logger.info("profile_saved", complete=profile.is_complete())
        except Exception as e:
            logger.error("profile_save_failed", error=str(e))
