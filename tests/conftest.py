"""Shared fixtures: a scripted chat endpoint, a recording sleep and wired components."""

import io
import struct
import zlib
from typing import List, Union

import httpx
import pytest
from PIL import Image

from fittrck_chat.config import Settings
from fittrck_chat.repositories.memory import InMemoryStorage
from fittrck_chat.repositories.messages import MessageStore
from fittrck_chat.services.chat_pipeline import ChatPipeline
from fittrck_chat.services.connectivity import ConnectivityMonitor

CHAT_URL = "https://chat.test/v1/chat/completions"


def completion(content: str) -> httpx.Response:
    """A well-formed 200 response carrying one choice."""
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-test",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        },
    )


def png_claiming_size(width: int, height: int) -> bytes:
    """A tiny PNG whose header declares the given dimensions."""

    def chunk(kind: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(b"\x00"))
        + chunk(b"IEND", b"")
    )


class ScriptedEndpoint:
    """Returns queued responses in order; the last one repeats once the queue is drained."""

    def __init__(self, *responses: Union[httpx.Response, Exception]):
        self.responses: List[Union[httpx.Response, Exception]] = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers each requested delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="sk-test", chat_url=CHAT_URL, connectivity_probe_enabled=False)


@pytest.fixture
def monitor() -> ConnectivityMonitor:
    return ConnectivityMonitor(initially_connected=True)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage) -> MessageStore:
    return MessageStore(storage, max_stored_messages=100)


@pytest.fixture
def make_pipeline(settings, monitor, sleep):
    """Factory building a pipeline around a scripted endpoint."""

    def _make(endpoint: ScriptedEndpoint, **overrides) -> ChatPipeline:
        pipeline_settings = settings.model_copy(update=overrides) if overrides else settings
        return ChatPipeline(pipeline_settings, monitor, client=endpoint.client(), sleep=sleep)

    return _make


@pytest.fixture
def jpeg_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), color=(200, 40, 40)).save(buffer, format="JPEG")
    return buffer.getvalue()
