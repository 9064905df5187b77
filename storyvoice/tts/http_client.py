"""HTTP clients for hosted speech-synthesis providers.

Responsibilities:
- Send minimal speech requests to OpenAI and ElevenLabs REST APIs.
- Classify HTTP and transport failures into stable diagnostic kinds.
- Keep API keys out of error messages.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any

import requests


class SpeechProviderError(RuntimeError):
    """Raised when a speech provider request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class _SpeechHTTPClient:
    """Shared HTTP settings, error mapping, and redaction for speech clients."""

    provider_label = "Provider"
    api_key_env_hint = "STORYVOICE_API_KEY"
    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _auth_headers(self) -> dict[str, str]:
        """Return provider-specific authentication headers."""

        raise NotImplementedError

    def _require_api_key(self) -> None:
        """Require API key presence before issuing requests."""

        if not self.api_key:
            raise SpeechProviderError(
                f"Missing {self.provider_label} API key. Set `{self.api_key_env_hint}`, "
                "use `--api-key`, or `--prompt-api-key`.",
                failure_kind="invalid_api_key",
            )

    def _request(
        self,
        method: str,
        endpoint_path: str,
        *,
        payload: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> bytes:
        """Execute one HTTP request and map failures consistently."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {**self._auth_headers(), "Content-Type": "application/json"}
        try:
            if method == "GET":
                response = requests.get(
                    endpoint, headers=headers, params=params, timeout=self.timeout_seconds
                )
            else:
                response = requests.post(
                    endpoint,
                    headers=headers,
                    params=params,
                    json=payload,
                    timeout=self.timeout_seconds,
                )
            response.raise_for_status()
            return bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = f"{self.provider_label} request timed out."
            else:
                detail = (
                    f"{self.provider_label} request transport error: "
                    f"{self._short_message(self._redact_sensitive_tokens(str(exc)))}"
                )
            raise SpeechProviderError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise SpeechProviderError(
                f"{self.provider_label} request timed out.", failure_kind="timeout"
            ) from exc

    def _post_audio(self, endpoint_path: str, payload: dict[str, Any], **kwargs: Any) -> bytes:
        """POST a speech request and require a non-empty audio body."""

        self._require_api_key()
        audio = self._request("POST", endpoint_path, payload=payload, **kwargs)
        if not audio:
            raise SpeechProviderError(f"{self.provider_label} speech response is empty.")
        return audio

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk[-_][A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        return re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise message and optional provider error code from a body.

        OpenAI nests errors under `error`; ElevenLabs uses `detail`, either as
        a string or as an object with `status` and `message`.
        """

        if not body:
            return "", None
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(cls._redact_sensitive_tokens(body)), None

        message: str | None = None
        provider_code: str | None = None
        if isinstance(payload, dict):
            nested = payload.get("error", payload.get("detail"))
            if isinstance(nested, str):
                message = nested
            elif isinstance(nested, dict):
                code_value = nested.get("code", nested.get("status"))
                if isinstance(code_value, str) and code_value.strip():
                    provider_code = code_value.strip()
                message_value = nested.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()
        return cls._short_message(cls._redact_sensitive_tokens(message or body)), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify HTTP errors into deterministic diagnostic kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.lower() if provider_code is not None else ""

        if status_code == 401 or "api key" in message_lower:
            return "invalid_api_key"
        if "quota" in normalized_code or (status_code == 429 and "quota" in message_lower):
            return "quota"
        if status_code in {408, 504} or "timeout" in message_lower or "timed out" in message_lower:
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    def _http_error_to_provider_error(self, exc: requests.HTTPError) -> SpeechProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        response = exc.response
        status_code = response.status_code if response is not None else 0
        body = (
            bytes(response.content).decode("utf-8", errors="replace").strip()
            if response is not None
            else ""
        )
        provider_message, provider_code = self._extract_provider_message(body)
        failure_kind = self._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": f"{self.provider_label} authentication failed",
            "quota": f"{self.provider_label} quota is insufficient for this request",
            "timeout": f"{self.provider_label} request timed out",
        }.get(failure_kind, f"{self.provider_label} request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."
        return SpeechProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )


class OpenAISpeechClient(_SpeechHTTPClient):
    """Minimal requests-based OpenAI `/audio/speech` client."""

    provider_label = "OpenAI"
    api_key_env_hint = "OPENAI_API_KEY"

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize OpenAI endpoint settings."""

        super().__init__(api_key=api_key, base_url=base_url, timeout_seconds=timeout_seconds)

    def _auth_headers(self) -> dict[str, str]:
        """Return bearer authentication headers."""

        return {"Authorization": f"Bearer {self.api_key}"}

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        speed: float = 1.0,
    ) -> bytes:
        """Return synthesized WAV bytes."""

        return self._post_audio(
            "/audio/speech",
            {
                "model": model,
                "voice": voice,
                "input": text,
                "response_format": "wav",
                "speed": max(0.25, min(4.0, speed)),
            },
        )


class ElevenLabsSpeechClient(_SpeechHTTPClient):
    """Minimal requests-based ElevenLabs text-to-speech client."""

    provider_label = "ElevenLabs"
    api_key_env_hint = "ELEVENLABS_API_KEY"
    PCM_SAMPLE_RATE = 24000

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.elevenlabs.io/v1",
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize ElevenLabs endpoint settings."""

        super().__init__(api_key=api_key, base_url=base_url, timeout_seconds=timeout_seconds)

    def _auth_headers(self) -> dict[str, str]:
        """Return `xi-api-key` authentication headers."""

        return {"xi-api-key": self.api_key}

    def synthesize_speech(
        self,
        *,
        voice_id: str,
        text: str,
        model_id: str,
        stability: float = 0.5,
        similarity_boost: float = 0.75,
        style: float = 0.0,
    ) -> bytes:
        """Return raw 16-bit mono PCM at `PCM_SAMPLE_RATE` Hz."""

        return self._post_audio(
            f"/text-to-speech/{voice_id}",
            {
                "text": text,
                "model_id": model_id,
                "voice_settings": {
                    "stability": stability,
                    "similarity_boost": similarity_boost,
                    "style": style,
                    "use_speaker_boost": True,
                },
            },
            params={"output_format": f"pcm_{self.PCM_SAMPLE_RATE}"},
        )

    def list_voices(self) -> list[dict[str, Any]]:
        """Return the account's voice catalog entries."""

        self._require_api_key()
        raw = self._request("GET", "/voices")
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SpeechProviderError("ElevenLabs returned invalid JSON payload.") from exc
        voices = payload.get("voices") if isinstance(payload, dict) else None
        if not isinstance(voices, list):
            raise SpeechProviderError("ElevenLabs response missing `voices` list.")
        return [voice for voice in voices if isinstance(voice, dict)]
