"""Per-segment audio generation and combination over a speech backend.

Responsibilities:
- Synthesize one WAV payload per text segment off the event loop.
- Translate provider failures into failed envelopes with actionable hints.
- Combine ordered segment audio into one `AudioOutput`.

Key types:
- `WavAudioPipeline`: `AudioGenerator` implementation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from ..models.datatypes import (
    AudioOutput,
    AudioOutputMetadata,
    AudioSegment,
    TextSegment,
)
from ..result import Failure, Result, Success
from ..tts.backends import SpeechBackend
from ..tts.http_client import SpeechProviderError
from ..tts.voices import VoiceProfile
from .merger import AudioMerger
from .wav import wav_duration_seconds

_PROVIDER_HINTS = {
    "invalid_api_key": (
        "Set a valid API key via `storyvoice narrate --prompt-api-key` or "
        "`STORYVOICE_API_KEY`, or clear a stale one with `storyvoice credentials-clear`."
    ),
    "quota": "Check the provider account's billing/quota, then retry.",
    "timeout": "Retry the command. If timeouts persist, raise `request_timeout_seconds`.",
    "transport": "Check internet/proxy connectivity and retry the command.",
}
_DEFAULT_PROVIDER_HINT = "Verify API key plus TTS model/voice/provider configuration, then retry."


def provider_failure_hint(failure_kind: str) -> str:
    """Return an actionable hint for a speech provider failure kind."""

    return _PROVIDER_HINTS.get(failure_kind, _DEFAULT_PROVIDER_HINT)


class WavAudioPipeline:
    """Generate and combine WAV segment audio with one speech backend."""

    def __init__(self, backend: SpeechBackend, merger: AudioMerger | None = None) -> None:
        """Initialize with the speech backend used for every segment."""

        self._backend = backend
        self._merger = merger if merger is not None else AudioMerger()

    @property
    def provider_id(self) -> str:
        """Return the backing speech provider id."""

        return self._backend.provider_id

    async def generate_segment_audio(
        self, segment: TextSegment, voice: VoiceProfile
    ) -> Result[AudioSegment]:
        """Synthesize audio for one segment with the given voice."""

        try:
            payload = await asyncio.to_thread(self._backend.synthesize, segment.content, voice)
        except SpeechProviderError as exc:
            return Failure(
                str(exc),
                metadata={
                    "failure_kind": exc.failure_kind,
                    "hint": provider_failure_hint(exc.failure_kind),
                    "segment_id": segment.segment_id,
                },
            )

        try:
            duration = wav_duration_seconds(payload)
        except ValueError as exc:
            return Failure(
                f"{self.provider_id} returned unreadable audio for {segment.segment_id}: {exc}"
            )

        return Success(
            AudioSegment(
                segment_id=segment.segment_id,
                audio=payload,
                duration_seconds=duration,
                speaker=segment.speaker,
                text=segment.content,
            ),
            metadata={"provider": self.provider_id, "voice_id": voice.voice_id},
        )

    async def combine_audio_segments(
        self, segments: Sequence[AudioSegment]
    ) -> Result[AudioOutput]:
        """Combine ordered segment audio into one output."""

        if not segments:
            return Failure("No audio segments provided")

        ordered = tuple(segments)
        try:
            combined = await asyncio.to_thread(
                self._merger.merge, [segment.audio for segment in ordered]
            )
        except ValueError as exc:
            return Failure(str(exc))

        total_duration = sum(segment.duration_seconds for segment in ordered)
        character_count = len({segment.speaker for segment in ordered})
        return Success(
            AudioOutput(
                audio=combined,
                duration_seconds=total_duration,
                segments=ordered,
                metadata=AudioOutputMetadata(
                    character_count=character_count,
                    total_segments=len(ordered),
                ),
            ),
            metadata={
                "total_segments": len(ordered),
                "total_duration_seconds": total_duration,
                "unique_speakers": character_count,
            },
        )
