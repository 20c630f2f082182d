"""
FastAPI Application Module

HTTP surface for the FitTrck chat core. The mobile client renders what these
endpoints return; all chat logic lives in the orchestrator and pipeline.

Key Features:
- Chat submission with optional photo (base64 JPEG)
- Durable, capped conversation history with plain-text export
- Profile storage used to personalise requests
- Structured logging, Prometheus metrics and OpenTelemetry tracing

Components are built once per app in ``create_app`` and reached through
``app.state``; there are no module-level singletons besides the default app.
"""

import base64
import binascii
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CollectorRegistry, Counter, generate_latest
from pydantic import BaseModel
from structlog import get_logger

from ..config import Settings
from ..domain.errors import ErrorKind
from ..domain.models import ChatFailure, ConversationTurn, UserContext
from ..logging_config import configure_logging
from ..repositories.base import Storage
from ..repositories.file import FileStorage
from ..repositories.memory import InMemoryStorage
from ..repositories.messages import MessageStore
from ..repositories.profile import ProfileStore
from ..services.chat_pipeline import ChatPipeline, Sleep
from ..services.connectivity import ConnectivityMonitor
from ..services.orchestrator import ChatOrchestrator

logger = get_logger()

_STATUS_FOR_KIND = {
    ErrorKind.EMPTY_INPUT: 400,
    ErrorKind.REQUEST_ENCODING_ERROR: 400,
    ErrorKind.IMAGE_TOO_LARGE: 413,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.NETWORK_UNAVAILABLE: 503,
    ErrorKind.INVALID_CREDENTIAL: 500,
    ErrorKind.INVALID_URL_CONFIGURATION: 500,
}


class MessageCreate(BaseModel):
    """Defines the structure for chat submissions"""
    content: str = ""
    image_base64: Optional[str] = None


class ChatReply(BaseModel):
    """Successful submission: the stored assistant turn and the new history size"""
    reply: ConversationTurn
    message_count: int


class ChatErrorBody(BaseModel):
    kind: ErrorKind
    message: str
    recovery_suggestion: str
    status_code: Optional[int] = None


class StatusBody(BaseModel):
    connected: bool
    busy: bool
    message_count: int
    last_message_date: Optional[datetime] = None


@dataclass
class ChatComponents:
    """Everything one app instance needs, wired together explicitly."""

    settings: Settings
    monitor: ConnectivityMonitor
    store: MessageStore
    profiles: ProfileStore
    pipeline: ChatPipeline
    orchestrator: ChatOrchestrator
    registry: CollectorRegistry
    submissions: Counter
    failures: Counter

    async def startup(self) -> None:
        await self.store.load()
        if self.settings.connectivity_probe_enabled:
            await self.monitor.start()
        logger.info("application_startup_complete", message_count=self.store.message_count())

    async def shutdown(self) -> None:
        await self.monitor.stop()
        await self.pipeline.aclose()
        logger.info("application_shutdown_complete")


def build_components(
    settings: Settings,
    storage: Optional[Storage] = None,
    monitor: Optional[ConnectivityMonitor] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    sleep: Optional[Sleep] = None,
) -> ChatComponents:
    """Wire storage, monitor, pipeline and orchestrator from settings."""
    if storage is None:
        storage = (
            FileStorage(settings.storage_path)
            if settings.storage_path is not None
            else InMemoryStorage()
        )
    if monitor is None:
        monitor = ConnectivityMonitor(
            host=settings.connectivity_host,
            port=settings.connectivity_port,
            interval=settings.connectivity_interval,
        )

    store = MessageStore(storage, max_stored_messages=settings.max_stored_messages)
    profiles = ProfileStore(storage)
    pipeline_kwargs = {"client": http_client}
    if sleep is not None:
        pipeline_kwargs["sleep"] = sleep
    pipeline = ChatPipeline(settings, monitor, **pipeline_kwargs)
    orchestrator = ChatOrchestrator(store, pipeline, profile=profiles.load)

    # Registry for isolated metric collection
    registry = CollectorRegistry()
    return ChatComponents(
        settings=settings,
        monitor=monitor,
        store=store,
        profiles=profiles,
        pipeline=pipeline,
        orchestrator=orchestrator,
        registry=registry,
        submissions=Counter(
            "chat_submissions_total", "Total chat submissions", registry=registry
        ),
        failures=Counter(
            "chat_failures_total", "Failed chat submissions by kind", ["kind"], registry=registry
        ),
    )


def get_components(request: Request) -> ChatComponents:
    """Returns the components bound to the running app"""
    return request.app.state.components


def _failure_response(failure: ChatFailure) -> JSONResponse:
    error = failure.error
    body = ChatErrorBody(
        kind=error.kind,
        message=error.description,
        recovery_suggestion=error.recovery_suggestion,
        status_code=error.status_code,
    )
    return JSONResponse(
        status_code=_STATUS_FOR_KIND.get(error.kind, 502),
        content=body.model_dump(mode="json"),
    )


def create_app(
    settings: Optional[Settings] = None,
    components: Optional[ChatComponents] = None,
) -> FastAPI:
    """Build the FastAPI app around a set of chat components."""
    if components is None:
        settings = settings or Settings.from_env()
        configure_logging(settings.log_level, settings.log_json)
        components = build_components(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Loads history and starts the connectivity probe"""
        await components.startup()
        yield
        await components.shutdown()

    app = FastAPI(
        title="FitTrck Chat API",
        description="Personal AI nutritionist chat backed by a multimodal chat-completion endpoint",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.components = components

    # Enable cross-origin requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Set up request tracing
    FastAPIInstrumentor.instrument_app(app)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Tracks requests"""
        logger.info("request_started", path=request.url.path, method=request.method)
        try:
            return await call_next(request)
        except Exception as e:
            logger.error("request_failed", path=request.url.path, error=str(e))
            raise

    @app.get("/messages", response_model=List[ConversationTurn])
    async def list_messages(
        components: ChatComponents = Depends(get_components),
    ) -> List[ConversationTurn]:
        """Gets the full in-memory conversation"""
        return list(components.store.messages)

    @app.post("/messages", response_model=ChatReply, responses={409: {}, 502: {"model": ChatErrorBody}})
    async def submit_message(
        message: MessageCreate,
        components: ChatComponents = Depends(get_components),
    ):
        """
        Records the user's turn and asks the assistant for a reply.
        Failures are returned as a ChatErrorBody; no assistant turn is stored.
        """
        orchestrator = components.orchestrator
        if orchestrator.is_busy:
            raise HTTPException(status_code=409, detail="A previous message is still being processed")

        image = None
        if message.image_base64:
            try:
                image = base64.b64decode(message.image_base64, validate=True)
            except (binascii.Error, ValueError):
                raise HTTPException(status_code=422, detail="image_base64 is not valid base64")

        components.submissions.inc()
        outcome = await orchestrator.submit(message.content, image=image)
        if isinstance(outcome, ChatFailure):
            components.failures.labels(kind=outcome.error.kind.value).inc()
            return _failure_response(outcome)

        return ChatReply(
            reply=components.store.messages[-1],
            message_count=components.store.message_count(),
        )

    @app.delete("/messages", status_code=204)
    async def clear_messages(components: ChatComponents = Depends(get_components)) -> Response:
        """Empties the conversation history"""
        await components.store.clear()
        return Response(status_code=204)

    @app.get("/messages/export", response_class=PlainTextResponse)
    async def export_messages(components: ChatComponents = Depends(get_components)) -> str:
        """Returns the conversation as readable text"""
        return components.store.export()

    @app.get("/profile", response_model=UserContext)
    async def get_profile(components: ChatComponents = Depends(get_components)) -> UserContext:
        return await components.profiles.load()

    @app.put("/profile", response_model=UserContext)
    async def update_profile(
        profile: UserContext,
        components: ChatComponents = Depends(get_components),
    ) -> UserContext:
        """Replaces the stored profile"""
        await components.profiles.save(profile)
        return profile

    @app.get("/status", response_model=StatusBody)
    async def status(components: ChatComponents = Depends(get_components)) -> StatusBody:
        """Connectivity and history summary for the client's header"""
        return StatusBody(
            connected=components.monitor.is_connected,
            busy=components.orchestrator.is_busy,
            message_count=components.store.message_count(),
            last_message_date=components.store.last_message_date(),
        )

    @app.get("/metrics")
    async def metrics(components: ChatComponents = Depends(get_components)):
        """Provides Prometheus metrics for system monitoring"""
        return Response(generate_latest(components.registry), media_type="text/plain")

    return app


app = create_app()
