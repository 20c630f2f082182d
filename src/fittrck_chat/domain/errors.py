"""Error taxonomy for the chat request pipeline."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Every way a chat exchange can fail."""

    NETWORK_UNAVAILABLE = "network_unavailable"
    INVALID_CREDENTIAL = "invalid_credential"
    EMPTY_INPUT = "empty_input"
    INVALID_URL_CONFIGURATION = "invalid_url_configuration"
    REQUEST_ENCODING_ERROR = "request_encoding_error"
    INVALID_SERVER_RESPONSE = "invalid_server_response"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    HTTP_ERROR = "http_error"
    DECODING_ERROR = "decoding_error"
    IMAGE_TOO_LARGE = "image_too_large"


_DESCRIPTIONS = {
    ErrorKind.INVALID_URL_CONFIGURATION: "Invalid API URL configuration",
    ErrorKind.REQUEST_ENCODING_ERROR: "Failed to encode request data",
    ErrorKind.INVALID_SERVER_RESPONSE: "Invalid response from server",
    ErrorKind.HTTP_ERROR: "Request failed with status code: {code}",
    ErrorKind.DECODING_ERROR: "Failed to decode server response",
    ErrorKind.NETWORK_UNAVAILABLE: (
        "No internet connection available. Please check your network and try again."
    ),
    ErrorKind.INVALID_CREDENTIAL: "Invalid OpenAI API key. Please check your configuration.",
    ErrorKind.EMPTY_INPUT: "Please enter a message or select an image",
    ErrorKind.RATE_LIMITED: "Too many requests. Please wait a moment and try again.",
    ErrorKind.SERVER_ERROR: "Server error ({code}). Please try again later.",
    ErrorKind.IMAGE_TOO_LARGE: "Image is too large. Please select a smaller image.",
}

_RECOVERY_SUGGESTIONS = {
    ErrorKind.NETWORK_UNAVAILABLE: "Check your internet connection and try again",
    ErrorKind.INVALID_CREDENTIAL: "Update your OpenAI API key in the app settings",
    ErrorKind.RATE_LIMITED: "Wait a few minutes before sending another message",
    ErrorKind.SERVER_ERROR: "The issue is on OpenAI's end. Try again in a few minutes",
    ErrorKind.IMAGE_TOO_LARGE: "Try taking a new photo or selecting a smaller image",
}

_DEFAULT_SUGGESTION = "Try again or contact support if the problem persists"


class ChatError(Exception):
    """Raised inside the pipeline; converted to a ChatFailure at its boundary."""

    def __init__(self, kind: ErrorKind, status_code: Optional[int] = None):
        self.kind = kind
        self.status_code = status_code
        super().__init__(self.description)

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.kind].format(code=self.status_code)

    @property
    def recovery_suggestion(self) -> str:
        return _RECOVERY_SUGGESTIONS.get(self.kind, _DEFAULT_SUGGESTION)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChatError):
            return NotImplemented
        return (self.kind, self.status_code) == (other.kind, other.status_code)

    def __hash__(self) -> int:
        return hash((self.kind, self.status_code))

    def __repr__(self) -> str:
        if self.status_code is None:
            return f"ChatError({self.kind.value})"
        return f"ChatError({self.kind.value}, {self.status_code})"
