"""Speech synthesis backends.

Responsibilities:
- Define the blocking `SpeechBackend` protocol that returns WAV payloads.
- Provide offline, OpenAI, and ElevenLabs implementations.
- Map provider-neutral voice profiles to provider-native voices.
"""

from __future__ import annotations

from array import array
import math
import re
import sys
from typing import Any, Protocol

from ..audio.wav import DEFAULT_SAMPLE_RATE, pcm16_to_wav
from .http_client import ElevenLabsSpeechClient, OpenAISpeechClient, SpeechProviderError
from .voices import VoiceProfile

WORDS_PER_MINUTE = 150

_OPENAI_VOICES = {
    ("female", "child"): "coral",
    ("female", "young"): "nova",
    ("female", "adult"): "shimmer",
    ("female", "elderly"): "sage",
    ("male", "child"): "echo",
    ("male", "young"): "echo",
    ("male", "adult"): "onyx",
    ("male", "elderly"): "ash",
}
_OPENAI_NEUTRAL_VOICES = {"warm": "fable", "dramatic": "fable"}
_OPENAI_DEFAULT_VOICE = "alloy"


class SpeechBackend(Protocol):
    """Blocking text-to-speech backend returning WAV payload bytes."""

    provider_id: str

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize text with the given voice."""


def estimate_duration_seconds(text: str, speed: float = 1.0) -> float:
    """Estimate spoken duration from word count at a nominal speaking rate."""

    words = len(re.findall(r"\S+", text))
    seconds = words / (WORDS_PER_MINUTE * max(speed, 0.1)) * 60.0
    return max(0.4, seconds)


class OfflineSpeechBackend:
    """Deterministic tone generator for previews and tests without network access.

    Each voice gets a quiet tone whose frequency follows gender and pitch,
    sized to the estimated speaking duration of the text.
    """

    provider_id = "offline"

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, amplitude: float = 0.2) -> None:
        """Initialize tone parameters."""

        self.sample_rate = sample_rate
        self.amplitude = amplitude

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Return a tone WAV whose length tracks the text's estimated duration."""

        base = {"female": 220.0, "male": 120.0}.get(voice.gender, 165.0)
        frequency = base * voice.pitch
        frame_count = int(round(estimate_duration_seconds(text, voice.speed) * self.sample_rate))
        period = max(2, int(round(self.sample_rate / frequency)))
        peak = int(32767 * self.amplitude)
        step = 2.0 * math.pi / period
        cycle = array("h", (int(round(peak * math.sin(step * index))) for index in range(period)))
        if sys.byteorder == "big":
            cycle.byteswap()
        repeats = frame_count // period + 1
        frames = (cycle.tobytes() * repeats)[: frame_count * 2]
        return pcm16_to_wav(frames, self.sample_rate)


def openai_voice_for(voice: VoiceProfile) -> str:
    """Map a voice profile to an OpenAI built-in voice name."""

    if voice.provider_voice_id:
        return voice.provider_voice_id
    if voice.gender == "neutral":
        return _OPENAI_NEUTRAL_VOICES.get(voice.tone, _OPENAI_DEFAULT_VOICE)
    return _OPENAI_VOICES.get((voice.gender, voice.age), _OPENAI_DEFAULT_VOICE)


class OpenAISpeechBackend:
    """OpenAI `/audio/speech` backend requesting WAV output."""

    provider_id = "openai"

    def __init__(
        self,
        *,
        model: str = "gpt-4o-mini-tts",
        api_key: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize OpenAI backend settings."""

        self.model = model
        self.client = OpenAISpeechClient(api_key=api_key, timeout_seconds=timeout_seconds)

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize one WAV payload."""

        return self.client.synthesize_speech(
            model=self.model,
            voice=openai_voice_for(voice),
            text=text,
            speed=voice.speed,
        )


def score_elevenlabs_voice(candidate: dict[str, Any], voice: VoiceProfile) -> int:
    """Score how well an ElevenLabs catalog entry matches a voice profile."""

    labels = candidate.get("labels") or {}
    name = str(candidate.get("name", "")).lower()
    gender = str(labels.get("gender", "")).lower()
    age = str(labels.get("age", "")).lower().replace(" ", "_")
    description = str(labels.get("description", "")).lower()

    score = 0
    if voice.gender != "neutral" and gender == voice.gender:
        score += 3
    elif voice.gender != "neutral" and gender and gender != voice.gender:
        score -= 5
    age_markers = {
        "child": ("child", "young"),
        "young": ("young",),
        "adult": ("middle", "adult"),
        "elderly": ("old", "elderly"),
    }[voice.age]
    if any(marker in age or marker in name for marker in age_markers):
        score += 2
    if voice.tone == "warm" and any(word in description for word in ("warm", "soft", "calm")):
        score += 1
    if voice.tone == "dramatic" and any(
        word in description for word in ("deep", "intense", "dramatic")
    ):
        score += 1
    if voice.voice_id.startswith("narrator") and "narrat" in f"{name} {description}":
        score += 2
    return score


class ElevenLabsSpeechBackend:
    """ElevenLabs backend that matches profiles against the account voice catalog."""

    provider_id = "elevenlabs"

    def __init__(
        self,
        *,
        model: str = "eleven_multilingual_v2",
        api_key: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize ElevenLabs backend settings."""

        self.model = model
        self.client = ElevenLabsSpeechClient(api_key=api_key, timeout_seconds=timeout_seconds)
        self._catalog: list[dict[str, Any]] | None = None
        self._voice_cache: dict[tuple[str, str, str, bool], str] = {}

    def synthesize(self, text: str, voice: VoiceProfile) -> bytes:
        """Synthesize one segment and wrap the returned PCM as WAV."""

        pcm = self.client.synthesize_speech(
            voice_id=self.voice_id_for(voice),
            text=text,
            model_id=self.model,
            stability=0.3 if voice.tone == "dramatic" else 0.5,
        )
        return pcm16_to_wav(pcm, ElevenLabsSpeechClient.PCM_SAMPLE_RATE)

    def voice_id_for(self, voice: VoiceProfile) -> str:
        """Resolve the ElevenLabs voice id for a profile, caching by traits."""

        if voice.provider_voice_id:
            return voice.provider_voice_id
        key = (voice.gender, voice.age, voice.tone, voice.voice_id.startswith("narrator"))
        cached = self._voice_cache.get(key)
        if cached is not None:
            return cached

        if self._catalog is None:
            self._catalog = self.client.list_voices()
        candidates = [entry for entry in self._catalog if entry.get("voice_id")]
        if not candidates:
            raise SpeechProviderError(
                "ElevenLabs account has no voices available.", failure_kind="http_error"
            )
        best = max(candidates, key=lambda entry: score_elevenlabs_voice(entry, voice))
        voice_id = str(best["voice_id"])
        self._voice_cache[key] = voice_id
        return voice_id
