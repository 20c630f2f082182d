"""Chat orchestrator: ties history, profile context and the pipeline together."""

from typing import Awaitable, Callable, Optional, Union

import structlog

from ..domain.errors import ChatError
from ..domain.models import ChatFailure, ChatOutcome, ChatSuccess, ConversationTurn, UserContext
from ..repositories.messages import MessageStore
from .chat_pipeline import ChatPipeline
from .context import context_preamble_for

logger = structlog.get_logger()

IMAGE_ONLY_CONTENT = "Please analyze this image"
IMAGE_ONLY_PROMPT = (
    "Please analyze this image for nutritional content and suggest meals I can make."
)

ProfileSource = Union[UserContext, Callable[[], Awaitable[UserContext]], None]


class ChatOrchestrator:
    """Handles one user submission at a time.

    ``profile`` is either a fixed UserContext or an async callable returning
    the current one, so an external profile store can be read per submission.
    """

    def __init__(
        self,
        store: MessageStore,
        pipeline: ChatPipeline,
        profile: ProfileSource = None,
    ) -> None:
        self.store = store
        self.pipeline = pipeline
        self._profile = profile
        self._busy = False

    @property
    def is_busy(self) -> bool:
        """True while a submission is outstanding; callers should hold new ones."""
        return self._busy

    async def _current_profile(self) -> Optional[UserContext]:
        if self._profile is None or isinstance(self._profile, UserContext):
            return self._profile
        return await self._profile()

    async def submit(self, text: str, image: Optional[bytes] = None) -> ChatOutcome:
        """Record the user turn, ask the assistant, record the reply on success."""
        text = text.strip()
        if not text and image is None:
            # Rejected by validation before any I/O; nothing to record
            return await self.pipeline.send(text)

        self._busy = True
        try:
            if image is not None:
                # Store the re-encoded JPEG, not the raw upload
                try:
                    image = await self.pipeline.prepare_image(image)
                except ChatError as e:
                    logger.warning("image_rejected", kind=e.kind.value)
                    return ChatFailure(error=e)

            user_turn = ConversationTurn(
                content=text or IMAGE_ONLY_CONTENT,
                is_from_user=True,
                image_data=image,
            )
            await self.store.append(user_turn)

            preamble = context_preamble_for(await self._current_profile())
            prompt = text if text or image is None else IMAGE_ONLY_PROMPT
            outcome = await self.pipeline.send(prompt, image=image, context_preamble=preamble)

            if isinstance(outcome, ChatSuccess):
                await self.store.append(
                    ConversationTurn(content=outcome.reply_text, is_from_user=False)
                )
                logger.info(
                    "message_processed",
                    user_message_length=len(text),
                    ai_response_length=len(outcome.reply_text),
                    personalized=preamble is not None,
                )
            else:
                logger.warning("message_failed", kind=outcome.error.kind.value)
            return outcome
        finally:
            self._busy = False
