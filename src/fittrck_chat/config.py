"""Application settings read from the environment."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

# Value shipped in the sample configuration; treated the same as a missing key
PLACEHOLDER_API_KEY = "YOUR_OPENAI_API_KEY_HERE"

DEFAULT_CHAT_URL = "https://api.openai.com/v1/chat/completions"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime configuration for the chat core and its HTTP surface."""

    api_key: Optional[str] = None
    chat_url: str = DEFAULT_CHAT_URL
    model: str = "gpt-4o"
    max_tokens: int = 1000
    temperature: float = 0.7
    jpeg_quality: int = 80
    max_image_bytes: int = 20 * 1024 * 1024  # 0 disables the guard

    max_stored_messages: int = 100
    storage_path: Optional[Path] = None  # None keeps everything in memory

    connectivity_host: str = "api.openai.com"
    connectivity_port: int = 443
    connectivity_interval: float = 10.0
    connectivity_probe_enabled: bool = True

    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from FITTRCK_* variables and OPENAI_API_KEY."""
        storage_path = os.getenv("FITTRCK_STORAGE_PATH")
        return cls(
            api_key=os.getenv("OPENAI_API_KEY"),
            chat_url=os.getenv("FITTRCK_CHAT_URL", DEFAULT_CHAT_URL),
            model=os.getenv("FITTRCK_MODEL", "gpt-4o"),
            max_tokens=int(os.getenv("FITTRCK_MAX_TOKENS", "1000")),
            temperature=float(os.getenv("FITTRCK_TEMPERATURE", "0.7")),
            jpeg_quality=int(os.getenv("FITTRCK_JPEG_QUALITY", "80")),
            max_image_bytes=int(os.getenv("FITTRCK_MAX_IMAGE_BYTES", str(20 * 1024 * 1024))),
            max_stored_messages=int(os.getenv("FITTRCK_MAX_STORED_MESSAGES", "100")),
            storage_path=Path(storage_path) if storage_path else None,
            connectivity_host=os.getenv("FITTRCK_CONNECTIVITY_HOST", "api.openai.com"),
            connectivity_port=int(os.getenv("FITTRCK_CONNECTIVITY_PORT", "443")),
            connectivity_interval=float(os.getenv("FITTRCK_CONNECTIVITY_INTERVAL", "10")),
            connectivity_probe_enabled=_env_bool("FITTRCK_CONNECTIVITY_PROBE", True),
            log_level=os.getenv("FITTRCK_LOG_LEVEL", "INFO"),
            log_json=_env_bool("FITTRCK_LOG_JSON", False),
        )

    @property
    def has_valid_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY
