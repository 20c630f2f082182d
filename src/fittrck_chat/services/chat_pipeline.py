"""Chat request pipeline for the multimodal chat-completion endpoint."""

import asyncio
import io
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx
import structlog
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from ..config import Settings
from ..domain.errors import ChatError, ErrorKind
from ..domain.models import ChatFailure, ChatOutcome, ChatSuccess
from ..domain.schemas import ChatRequest, CompletionResponse
from .connectivity import ConnectivityMonitor

logger = structlog.get_logger()

SYSTEM_PROMPT = """You are FitTrck, a personal AI nutritionist and kitchen helper. You help users with:
- Analyzing pantry/fridge contents from photos
- Creating personalized meal plans based on available ingredients
- Providing nutrition advice and macro tracking
- Suggesting recipe modifications based on dietary preferences
- Helping with grocery planning and budget-friendly meals

Always be helpful, encouraging, and focus on practical, actionable advice. When users share photos of their pantry or fridge, analyze the visible ingredients and suggest specific meals they can make."""

MAX_RATE_LIMIT_RETRIES = 3
MAX_SERVER_ERROR_RETRIES = 1
SERVER_ERROR_RETRY_DELAY = 2.0

Sleep = Callable[[float], Awaitable[None]]


class ChatPipeline:
    """Validates input, talks to the endpoint and resolves every result into a ChatOutcome.

    Retry policy, driven by one attempt counter per ``send`` call:

    * 429: wait 2**attempt seconds (1, 2, 4) and retry, at most 3 times.
    * 5xx: wait 2 seconds and retry once.
    * 401 and any other status fail immediately.

    Each retry re-reads the connectivity snapshot and sends a new request.
    """

    def __init__(
        self,
        settings: Settings,
        monitor: ConnectivityMonitor,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.monitor = monitor
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep
        logger.info(
            "chat_pipeline_init",
            model=settings.model,
            url=settings.chat_url,
            has_valid_key=settings.has_valid_api_key,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(
        self,
        user_text: str,
        image: Optional[bytes] = None,
        context_preamble: Optional[str] = None,
    ) -> ChatOutcome:
        """Run one exchange; never raises for expected failures."""
        try:
            reply = await self._send(user_text, image, context_preamble)
        except ChatError as e:
            logger.warning("chat_request_failed", kind=e.kind.value, status_code=e.status_code)
            return ChatFailure(error=e)
        return ChatSuccess(reply_text=reply)

    async def _send(
        self,
        user_text: str,
        image: Optional[bytes],
        context_preamble: Optional[str],
    ) -> str:
        if not self.monitor.is_connected:
            raise ChatError(ErrorKind.NETWORK_UNAVAILABLE)

        if not self.settings.has_valid_api_key:
            raise ChatError(ErrorKind.INVALID_CREDENTIAL)

        if not user_text.strip() and image is None:
            raise ChatError(ErrorKind.EMPTY_INPUT)

        jpeg = await self.prepare_image(image) if image is not None else None
        url = self._validated_url()

        request = ChatRequest(
            system_prompt=SYSTEM_PROMPT,
            user_text=user_text,
            image=jpeg,
            context_preamble=context_preamble,
        )
        try:
            body = request.to_payload(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            ).model_dump_json().encode()
        except (ValueError, TypeError) as e:
            logger.error("request_encoding_failed", error=str(e))
            raise ChatError(ErrorKind.REQUEST_ENCODING_ERROR) from e

        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

        attempt = 0
        while True:
            if attempt > 0 and not self.monitor.is_connected:
                raise ChatError(ErrorKind.NETWORK_UNAVAILABLE)

            response = await self._post(url, body, headers, attempt)
            status = response.status_code

            if status == 200:
                return self._decode(response)

            if status == 401:
                raise ChatError(ErrorKind.INVALID_CREDENTIAL, status)

            if status == 429:
                if attempt < MAX_RATE_LIMIT_RETRIES:
                    delay = float(2 ** attempt)
                    logger.warning("rate_limited_retrying", attempt=attempt, delay=delay)
                    await self._sleep(delay)
                    attempt += 1
                    continue
                raise ChatError(ErrorKind.RATE_LIMITED, status)

            if 500 <= status <= 599:
                if attempt < MAX_SERVER_ERROR_RETRIES:
                    logger.warning(
                        "server_error_retrying",
                        attempt=attempt,
                        status_code=status,
                        delay=SERVER_ERROR_RETRY_DELAY,
                    )
                    await self._sleep(SERVER_ERROR_RETRY_DELAY)
                    attempt += 1
                    continue
                raise ChatError(ErrorKind.SERVER_ERROR, status)

            raise ChatError(ErrorKind.HTTP_ERROR, status)

    async def _post(self, url: str, body: bytes, headers: dict, attempt: int) -> httpx.Response:
        logger.info("chat_request_sent", attempt=attempt, size=len(body))
        try:
            response = await self.client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error("chat_transport_error", attempt=attempt, error=str(e))
            raise ChatError(ErrorKind.INVALID_SERVER_RESPONSE) from e
        logger.info("chat_response_received", attempt=attempt, status_code=response.status_code)
        return response

    def _decode(self, response: httpx.Response) -> str:
        try:
            return CompletionResponse.model_validate_json(response.content).reply_text
        except ValidationError as e:
            logger.error("chat_response_decode_failed", error=str(e))
            raise ChatError(ErrorKind.DECODING_ERROR) from e

    async def prepare_image(self, image: bytes) -> bytes:
        """Re-encode the picture as JPEG in a worker thread.

        Raises ChatError when the bytes cannot be decoded or the result is
        over the configured size limit.
        """
        return await asyncio.to_thread(self._encode_image, image)

    def _encode_image(self, image: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(image)) as img:
                buffer = io.BytesIO()
                img.convert("RGB").save(buffer, format="JPEG", quality=self.settings.jpeg_quality)
        except Image.DecompressionBombError as e:
            logger.warning("image_too_many_pixels", error=str(e))
            raise ChatError(ErrorKind.IMAGE_TOO_LARGE) from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.error("image_encoding_failed", error=str(e))
            raise ChatError(ErrorKind.REQUEST_ENCODING_ERROR) from e

        jpeg = buffer.getvalue()
        limit = self.settings.max_image_bytes
        if limit and len(jpeg) > limit:
            logger.warning("image_too_large", size=len(jpeg), limit=limit)
            raise ChatError(ErrorKind.IMAGE_TOO_LARGE)
        return jpeg

    def _validated_url(self) -> str:
        url = self.settings.chat_url
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ChatError(ErrorKind.INVALID_URL_CONFIGURATION)
        return url
