"""Test suite for environment-driven settings."""

from pathlib import Path

from fittrck_chat.config import DEFAULT_CHAT_URL, PLACEHOLDER_API_KEY, Settings


def test_defaults(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "FITTRCK_CHAT_URL",
        "FITTRCK_STORAGE_PATH",
        "FITTRCK_CONNECTIVITY_PROBE",
        "FITTRCK_JPEG_QUALITY",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.api_key is None
    assert settings.chat_url == DEFAULT_CHAT_URL
    assert settings.model == "gpt-4o"
    assert settings.max_tokens == 1000
    assert settings.temperature == 0.7
    assert settings.jpeg_quality == 80
    assert settings.max_stored_messages == 100
    assert settings.storage_path is None
    assert settings.connectivity_probe_enabled is True
    assert not settings.has_valid_api_key


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-live")
    monkeypatch.setenv("FITTRCK_MAX_STORED_MESSAGES", "25")
    monkeypatch.setenv("FITTRCK_STORAGE_PATH", str(tmp_path))
    monkeypatch.setenv("FITTRCK_CONNECTIVITY_PROBE", "off")
    monkeypatch.setenv("FITTRCK_JPEG_QUALITY", "65")

    settings = Settings.from_env()

    assert settings.has_valid_api_key
    assert settings.max_stored_messages == 25
    assert settings.storage_path == Path(tmp_path)
    assert settings.connectivity_probe_enabled is False
    assert settings.jpeg_quality == 65


def test_placeholder_key_is_not_valid():
    assert not Settings(api_key=PLACEHOLDER_API_KEY).has_valid_api_key
