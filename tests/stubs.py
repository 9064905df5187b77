"""In-memory stage implementations for orchestrator tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from storyvoice.audio.merger import AudioMerger
from storyvoice.audio.wav import pcm16_to_wav, wav_duration_seconds
from storyvoice.models.datatypes import (
    AudioOutput,
    AudioOutputMetadata,
    AudioSegment,
    Character,
    QualityReport,
    TextSegment,
    VoiceAssignment,
)
from storyvoice.registry import (
    AUDIO_GENERATOR,
    AUDIO_OPTIMIZER,
    CHARACTER_DETECTOR,
    QUALITY_ANALYZER,
    TEXT_ANALYZER,
    VOICE_ASSIGNER,
    ServiceRegistry,
)
from storyvoice.result import Failure, Result, Success
from storyvoice.tts.voices import VOICE_TEMPLATES, VoiceProfile

SAMPLE_RATE = 8000


def tone_wav(frame_count: int) -> bytes:
    """Return a mono 16-bit WAV payload with `frame_count` non-silent frames."""

    return pcm16_to_wav(b"\x10\x00" * frame_count, SAMPLE_RATE)


def make_segment(index: int, speaker: str, content: str, kind: str = "dialogue") -> TextSegment:
    """Build a text segment with a stable id."""

    return TextSegment(
        segment_id=f"segment-{index}",
        content=content,
        speaker=speaker,
        kind=kind,  # type: ignore[arg-type]
        start_offset=index * 10,
        end_offset=index * 10 + len(content),
    )


def dialogue_segments(*speakers: str) -> list[TextSegment]:
    """Build one dialogue segment per speaker, in order."""

    return [
        make_segment(index, speaker, f"Line {index} from {speaker}.")
        for index, speaker in enumerate(speakers, start=1)
    ]


class StubTextAnalyzer:
    """Return fixed segments, or a fixed envelope."""

    def __init__(
        self,
        segments: Sequence[TextSegment] = (),
        result: Result[list[TextSegment]] | None = None,
    ) -> None:
        self.segments = list(segments)
        self.result = result
        self.calls: list[str] = []

    async def parse_text(self, text: str) -> Result[list[TextSegment]]:
        self.calls.append(text)
        await asyncio.sleep(0)
        if self.result is not None:
            return self.result
        return Success(list(self.segments))


class StubCharacterDetector:
    """Report one character per distinct speaker."""

    def __init__(self, result: Result[list[Character]] | None = None) -> None:
        self.result = result
        self.calls = 0

    async def detect_characters(self, segments: Sequence[TextSegment]) -> Result[list[Character]]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.result is not None:
            return self.result
        names = list(dict.fromkeys(segment.speaker for segment in segments))
        return Success(
            [
                Character(
                    name=name,
                    occurrences=sum(1 for segment in segments if segment.speaker == name),
                    first_occurrence=index,
                )
                for index, name in enumerate(names)
            ]
        )


class StubVoiceAssigner:
    """Assign catalog templates in order, optionally leaving some characters out."""

    def __init__(self, skip: Sequence[str] = ()) -> None:
        self.skip = set(skip)
        self.calls = 0

    async def assign_voices(
        self, characters: Sequence[Character]
    ) -> Result[list[VoiceAssignment]]:
        self.calls += 1
        await asyncio.sleep(0)
        return Success(
            [
                VoiceAssignment(
                    character=character.name,
                    voice=VOICE_TEMPLATES[index % len(VOICE_TEMPLATES)],
                    confidence=0.9,
                )
                for index, character in enumerate(characters)
                if character.name not in self.skip
            ]
        )


class StubAudioGenerator:
    """Produce fixed-length tone audio per segment.

    `gate`, when set, is awaited before each segment so tests can hold a run
    inside the generating stage.
    """

    def __init__(
        self,
        frames_per_segment: int = 800,
        fail_segment: str | None = None,
        raise_segment: str | None = None,
        fail_hint: str | None = None,
        combine_result: Result[AudioOutput] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.frames_per_segment = frames_per_segment
        self.fail_segment = fail_segment
        self.raise_segment = raise_segment
        self.fail_hint = fail_hint
        self.combine_result = combine_result
        self.gate = gate
        self.entered = asyncio.Event() if gate is not None else None
        self.generated: list[tuple[str, str]] = []
        self.voices: list[VoiceProfile] = []
        self.texts: list[str] = []
        self.combine_calls = 0

    async def generate_segment_audio(
        self, segment: TextSegment, voice: VoiceProfile
    ) -> Result[AudioSegment]:
        if self.gate is not None and self.entered is not None:
            self.entered.set()
            await self.gate.wait()
        await asyncio.sleep(0)
        if segment.segment_id == self.raise_segment:
            raise RuntimeError("synthesizer crashed")
        if segment.segment_id == self.fail_segment:
            metadata = {"hint": self.fail_hint} if self.fail_hint else {}
            return Failure("provider rejected request", metadata=metadata)

        self.generated.append((segment.segment_id, voice.voice_id))
        self.voices.append(voice)
        self.texts.append(segment.content)
        audio = tone_wav(self.frames_per_segment)
        return Success(
            AudioSegment(
                segment_id=segment.segment_id,
                audio=audio,
                duration_seconds=wav_duration_seconds(audio),
                speaker=segment.speaker,
                text=segment.content,
            )
        )

    async def combine_audio_segments(
        self, segments: Sequence[AudioSegment]
    ) -> Result[AudioOutput]:
        self.combine_calls += 1
        await asyncio.sleep(0)
        if self.combine_result is not None:
            return self.combine_result
        ordered = tuple(segments)
        return Success(
            AudioOutput(
                audio=AudioMerger().merge([segment.audio for segment in ordered]),
                duration_seconds=sum(segment.duration_seconds for segment in ordered),
                segments=ordered,
                metadata=AudioOutputMetadata(
                    character_count=len({segment.speaker for segment in ordered}),
                    total_segments=len(ordered),
                ),
            )
        )


class StubAudioOptimizer:
    """Tag payloads as optimized, or fail in the configured way."""

    OPTIMIZED_SUFFIX = b"|optimized"

    def __init__(self, fail: bool = False, error: Exception | None = None) -> None:
        self.fail = fail
        self.error = error
        self.calls = 0

    async def optimize_audio(self, payload: bytes) -> Result[bytes]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.fail:
            return Failure("optimizer unavailable")
        return Success(payload + self.OPTIMIZED_SUFFIX)


class StubQualityAnalyzer:
    """Return a fixed report."""

    REPORT = QualityReport(
        word_count=6,
        sentence_count=2,
        dialogue_ratio=0.5,
        reading_ease=90.0,
    )

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = 0

    async def analyze_quality(self, text: str) -> Result[QualityReport]:
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail:
            return Failure("text too short")
        return Success(self.REPORT)


def make_registry(
    segments: Sequence[TextSegment] = (),
    *,
    analyzer: object | None = None,
    detector: object | None = None,
    assigner: object | None = None,
    generator: object | None = None,
    optimizer: object | None = None,
    quality: object | None = None,
    omit: Sequence[str] = (),
) -> ServiceRegistry:
    """Return a registry with stub stages, omitting the named capabilities."""

    bindings = {
        TEXT_ANALYZER: analyzer or StubTextAnalyzer(segments),
        CHARACTER_DETECTOR: detector or StubCharacterDetector(),
        VOICE_ASSIGNER: assigner or StubVoiceAssigner(),
        AUDIO_GENERATOR: generator or StubAudioGenerator(),
        AUDIO_OPTIMIZER: optimizer or StubAudioOptimizer(),
    }
    if quality is not None:
        bindings[QUALITY_ANALYZER] = quality

    registry = ServiceRegistry()
    for capability, instance in bindings.items():
        if capability not in omit:
            registry.register(capability, instance)
    return registry
