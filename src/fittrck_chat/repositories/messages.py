"""Conversation history with a capped, durable copy."""

import asyncio
from datetime import datetime
from typing import List, Optional, Tuple

import structlog
from pydantic import TypeAdapter, ValidationError

from ..domain.models import ConversationTurn, utc_now
from .base import Storage

logger = structlog.get_logger()

MESSAGES_KEY = "SavedMessages"
DEFAULT_MAX_STORED_MESSAGES = 100

WELCOME_MESSAGE = """👋 Welcome to FitTrck! I'm your personal AI nutritionist and kitchen helper.

I can help you with:
• 📸 Analyzing your pantry/fridge contents from photos
• 🍽️ Creating personalized meal plans
• 📊 Tracking nutrition and macros
• 🥗 Suggesting healthy recipe modifications
• 🛒 Planning grocery lists and budget-friendly meals

Try taking a photo of your pantry or fridge, or just ask me about nutrition!"""

_EXPORT_DATE_FORMAT = "%b %d, %Y at %I:%M %p"

_turns_adapter = TypeAdapter(List[ConversationTurn])


class MessageStore:
    """Append-only conversation log.

    The in-memory log is never truncated. Only the persisted copy is capped to
    the most recent ``max_stored_messages`` turns. Every mutation runs under a
    single lock so concurrent appends and clears cannot lose updates to the
    stored blob.
    """

    def __init__(
        self,
        storage: Storage,
        max_stored_messages: int = DEFAULT_MAX_STORED_MESSAGES,
        key: str = MESSAGES_KEY,
    ) -> None:
        if max_stored_messages < 1:
            raise ValueError("max_stored_messages must be at least 1")
        self._storage = storage
        self._key = key
        self.max_stored_messages = max_stored_messages
        self._messages: List[ConversationTurn] = []
        self._lock = asyncio.Lock()

    @property
    def messages(self) -> Tuple[ConversationTurn, ...]:
        """Snapshot of the full in-memory log."""
        return tuple(self._messages)

    def message_count(self) -> int:
        return len(self._messages)

    def last_message_date(self) -> Optional[datetime]:
        return self._messages[-1].timestamp if self._messages else None

    async def append(self, turn: ConversationTurn) -> None:
        """Add a turn to the tail and persist before returning."""
        async with self._lock:
            self._messages.append(turn)
            await self._save()
        logger.info(
            "message_added",
            message_id=str(turn.id),
            from_user=turn.is_from_user,
            has_image=turn.image_data is not None,
        )

    async def clear(self) -> None:
        """Drop every turn and persist the empty log."""
        async with self._lock:
            self._messages.clear()
            await self._save()
        logger.info("messages_cleared")

    async def load(self) -> None:
        """Replace the in-memory log with what storage holds.

        Missing or unreadable data falls back to an empty log. Either way an
        empty log is seeded with the welcome turn.
        """
        async with self._lock:
            try:
                data = await self._storage.get(self._key)
            except Exception as e:
                logger.error("messages_load_failed", error=str(e))
                data = None

            if data is None:
                self._messages = []
            else:
                try:
                    self._messages = _turns_adapter.validate_json(data)
                except ValidationError as e:
                    logger.error("messages_decode_failed", error=str(e))
                    self._messages = []

            if not self._messages:
                self._messages.append(ConversationTurn(content=WELCOME_MESSAGE, is_from_user=False))
                await self._save()

            logger.info("messages_loaded", count=len(self._messages))

    def export(self) -> str:
        """Render the full in-memory log as readable text."""
        lines = [
            "FitTrck Conversation Export",
            f"Generated: {_format_timestamp(utc_now())}",
            "",
        ]
        for turn in self._messages:
            sender = "You" if turn.is_from_user else "FitTrck"
            lines.append(f"[{_format_timestamp(turn.timestamp)}] {sender}:")
            lines.append(turn.content)
            if turn.image_data is not None:
                lines.append("[Image attached]")
            lines.append("")
        return "\n".join(lines) + "\n"

    async def _save(self) -> None:
        # Caller holds self._lock
        to_save = self._messages[-self.max_stored_messages:]
        try:
            data = _turns_adapter.dump_json(to_save, by_alias=True, exclude_none=True)
            await self._storage.set(self._key, data)
        except Exception as e:
            logger.error("messages_save_failed", error=str(e), count=len(to_save))


def _format_timestamp(value: datetime) -> str:
    return value.astimezone().strftime(_EXPORT_DATE_FORMAT)
