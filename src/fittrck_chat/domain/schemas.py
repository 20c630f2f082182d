"""Wire schemas for the chat-completion endpoint."""

import base64
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


class RequestMessage(BaseModel):
    """A chat message; content is plain text or a list of multimodal parts."""

    role: Literal["system", "user", "assistant"]
    content: Union[str, List[Union[TextPart, ImagePart]]]


class CompletionRequest(BaseModel):
    model: str
    messages: List[RequestMessage]
    max_tokens: int
    temperature: float


class ResponseMessage(BaseModel):
    role: Optional[str] = None
    content: StrictStr


class Choice(BaseModel):
    message: ResponseMessage


class CompletionResponse(BaseModel):
    """Only the fields the pipeline reads; anything else is ignored."""

    model_config = ConfigDict(extra="ignore")

    choices: List[Choice] = Field(min_length=1)

    @property
    def reply_text(self) -> str:
        return self.choices[0].message.content


class ChatRequest(BaseModel):
    """One outbound exchange before it is rendered to the wire format."""

    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_text: str
    image: Optional[bytes] = None  # JPEG
    context_preamble: Optional[str] = None

    @property
    def prompt_text(self) -> str:
        if self.context_preamble:
            return f"{self.context_preamble}\n\nUser message: {self.user_text}"
        return self.user_text

    def to_payload(self, model: str, max_tokens: int, temperature: float) -> CompletionRequest:
        messages = [RequestMessage(role="system", content=self.system_prompt)]
        if self.image is not None:
            data_uri = "data:image/jpeg;base64," + base64.b64encode(self.image).decode("ascii")
            messages.append(
                RequestMessage(
                    role="user",
                    content=[
                        TextPart(text=self.prompt_text),
                        ImagePart(image_url=ImageUrl(url=data_uri)),
                    ],
                )
            )
        else:
            messages.append(RequestMessage(role="user", content=self.prompt_text))
        return CompletionRequest(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
