"""Integration-test fixtures for deterministic provider behavior."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from storyvoice.audio.wav import pcm16_to_wav
from storyvoice.tts import http_client

STORY_TEXT = 'Sarah said, "Hi." John replied, "Hello."\n'


class MockSpeechResponse:
    """Minimal requests response returning a short silent WAV payload."""

    status_code = 200
    content = pcm16_to_wav(b"\x00\x00" * 2400, 24000)

    def raise_for_status(self) -> None:
        """Successful responses never raise."""

        return None


class InMemoryCredentialStore:
    """Credential store double so CLI tests never touch the OS keyring."""

    def __init__(self) -> None:
        """Initialize empty per-provider storage."""

        self.keys: dict[str, str] = {}

    def is_available(self) -> bool:
        """Report storage as available."""

        return True

    def get_api_key(self, provider_id: str) -> str | None:
        """Return a stored key."""

        return self.keys.get(provider_id)

    def set_api_key(self, provider_id: str, api_key: str) -> None:
        """Store a key."""

        self.keys[provider_id] = api_key

    def clear_api_key(self, provider_id: str) -> bool:
        """Remove a key and report whether one was present."""

        return self.keys.pop(provider_id, None) is not None


@pytest.fixture(autouse=True)
def _mock_speech_http(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Answer speech POSTs with WAV audio and block every other request."""

    calls: list[dict[str, Any]] = []

    def _fake_post(url: str, **kwargs: Any) -> MockSpeechResponse:
        calls.append({"url": url, **kwargs})
        return MockSpeechResponse()

    def _blocked_get(url: str, **kwargs: Any) -> None:
        raise AssertionError(f"unexpected GET {url} in integration tests")

    monkeypatch.setattr(http_client.requests, "post", _fake_post)
    monkeypatch.setattr(http_client.requests, "get", _blocked_get)
    return calls


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Route every CLI credential lookup to one in-memory store."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("storyvoice.cli.create_credential_store", lambda: store)
    return store


@pytest.fixture
def story_path(tmp_path: Path) -> Path:
    """Write a two-speaker story file."""

    path = tmp_path / "story.txt"
    path.write_text(STORY_TEXT, encoding="utf-8")
    return path
