"""Pipeline stage interfaces consumed through the service registry.

Every stage method is a coroutine returning a `Result` envelope. Stages may
raise internally; the orchestrator converts anything that escapes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models.datatypes import (
    AudioOutput,
    AudioSegment,
    Character,
    QualityReport,
    TextSegment,
    VoiceAssignment,
)
from .result import Result
from .tts.voices import VoiceProfile


@runtime_checkable
class TextAnalyzer(Protocol):
    """Split raw text into speaker-attributed segments."""

    async def parse_text(self, text: str) -> Result[list[TextSegment]]:
        """Parse input text into ordered segments."""


@runtime_checkable
class CharacterDetector(Protocol):
    """Derive the character set from a segment list."""

    async def detect_characters(
        self, segments: Sequence[TextSegment]
    ) -> Result[list[Character]]:
        """Detect characters referenced by the segments."""


@runtime_checkable
class VoiceAssigner(Protocol):
    """Choose one voice per detected character."""

    async def assign_voices(
        self, characters: Sequence[Character]
    ) -> Result[list[VoiceAssignment]]:
        """Assign voices to characters."""


@runtime_checkable
class AudioGenerator(Protocol):
    """Synthesize per-segment audio and combine it."""

    async def generate_segment_audio(
        self, segment: TextSegment, voice: VoiceProfile
    ) -> Result[AudioSegment]:
        """Synthesize audio for one segment with the given voice."""

    async def combine_audio_segments(
        self, segments: Sequence[AudioSegment]
    ) -> Result[AudioOutput]:
        """Combine ordered segment audio into one output."""


@runtime_checkable
class AudioOptimizer(Protocol):
    """Post-process a combined audio payload."""

    async def optimize_audio(self, payload: bytes) -> Result[bytes]:
        """Return an optimized payload."""


@runtime_checkable
class QualityAnalyzer(Protocol):
    """Optional writing-quality analysis of the source text."""

    async def analyze_quality(self, text: str) -> Result[QualityReport]:
        """Analyze input text and return a quality report."""
