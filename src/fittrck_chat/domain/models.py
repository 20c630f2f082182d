"""Domain models for the chat core."""

from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ChatError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class ConversationTurn(BaseModel):
    """One message in the conversation, authored by the user or the assistant."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    id: UUID = Field(default_factory=uuid4)
    content: str
    is_from_user: bool
    timestamp: datetime = Field(default_factory=utc_now)
    image_data: Optional[bytes] = None


class UserContext(BaseModel):
    """Profile fields used to personalise outbound requests."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    age: int = 0
    height: float = 0.0  # cm
    weight: float = 0.0  # kg
    activity_level: str = "moderate"
    dietary_restrictions: List[str] = Field(default_factory=list)
    health_goals: List[str] = Field(default_factory=list)
    allergies: str = ""
    preferred_cuisines: str = ""
    cooking_skill_level: str = "beginner"
    budget_range: str = "medium"

    def is_complete(self) -> bool:
        """A profile is usable once it has a name, an age and at least one goal."""
        return bool(self.name.strip()) and self.age > 0 and bool(self.health_goals)


class ChatSuccess(BaseModel):
    """Reply text extracted from a successful completion."""

    model_config = ConfigDict(frozen=True)

    reply_text: str


class ChatFailure(BaseModel):
    """A failed exchange, resolved into a single error kind."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: ChatError

    @property
    def description(self) -> str:
        return self.error.description


ChatOutcome = Union[ChatSuccess, ChatFailure]
