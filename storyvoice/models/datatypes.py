"""Core datatypes shared across Storyvoice modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Represent the orchestrator-owned processing status snapshot.

Key types:
- `TextSegment`, `Character`, `VoiceAssignment`, `AudioSegment`,
  `AudioOutput`, `ProcessingStatus`, `ProcessingOptions`,
  `NarratorModeConfig`, and `QualityReport`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from ..tts.voices import DEFAULT_NARRATOR_VOICE_ID, VoiceProfile, find_voice_template

SegmentKind = Literal["narration", "dialogue", "thought"]
ProcessingStage = Literal[
    "analyzing",
    "detecting",
    "assigning",
    "generating",
    "quality_check",
    "complete",
    "error",
]
ProcessingMode = Literal["multi-voice", "narrator"]
OutputFormat = Literal["wav", "mp3"]
CharacterNameStyle = Literal["full", "short", "none"]

NARRATOR_SPEAKER = "Narrator"
PROCESSING_MODES = frozenset({"multi-voice", "narrator"})
OUTPUT_FORMATS = frozenset({"wav", "mp3"})


@dataclass(frozen=True, slots=True)
class TextSegment:
    """A contiguous span of the input text attributed to one speaker.

    Attributes:
        segment_id: Stable identifier unique within one run.
        content: Text to be spoken.
        speaker: Speaker label (`Narrator` for narration).
        kind: Segment kind (`narration`, `dialogue`, `thought`).
        start_offset: Inclusive character offset in the input text.
        end_offset: Exclusive character offset in the input text.
        mood: Optional mood hint from analysis.
    """

    segment_id: str
    content: str
    speaker: str
    kind: SegmentKind
    start_offset: int
    end_offset: int
    mood: str | None = None


@dataclass(frozen=True, slots=True)
class Character:
    """A speaker detected across the segment set.

    Attributes:
        name: Speaker label as used by segments.
        occurrences: Number of segments spoken by this character.
        traits: Inferred characteristics (for example `protagonist`).
        emotional_states: Inferred emotional states.
        is_primary: Whether the character is a main character.
        first_occurrence: Index of the first segment spoken by this character.
    """

    name: str
    occurrences: int
    traits: tuple[str, ...] = ()
    emotional_states: tuple[str, ...] = ()
    is_primary: bool = False
    first_occurrence: int = 0


@dataclass(frozen=True, slots=True)
class VoiceAssignment:
    """Voice chosen for one character."""

    character: str
    voice: VoiceProfile
    confidence: float


@dataclass(frozen=True, slots=True)
class AudioSegment:
    """Synthesized audio for one text segment.

    Attributes:
        segment_id: Identifier of the source text segment.
        audio: WAV payload bytes.
        duration_seconds: Playback duration.
        speaker: Speaker label of the source segment.
        text: Source text that was spoken.
    """

    segment_id: str
    audio: bytes
    duration_seconds: float
    speaker: str
    text: str


@dataclass(frozen=True, slots=True)
class QualityReport:
    """Writing-quality summary attached to an output when requested."""

    word_count: int
    sentence_count: int
    dialogue_ratio: float
    reading_ease: float
    telling_phrases: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AudioOutputMetadata:
    """Run-level metadata for a combined audio output."""

    character_count: int
    total_segments: int
    processing_time_seconds: float = 0.0
    optimized: bool = False
    quality_report: QualityReport | None = None


@dataclass(frozen=True, slots=True)
class AudioOutput:
    """Terminal artifact of a successful run.

    Attributes:
        audio: Combined WAV payload bytes.
        duration_seconds: Total playback duration.
        segments: Ordered per-segment audio, aggregated without copying.
        metadata: Segment/character counts and processing details.
    """

    audio: bytes
    duration_seconds: float
    segments: tuple[AudioSegment, ...]
    metadata: AudioOutputMetadata


@dataclass(frozen=True, slots=True)
class ProcessingStatus:
    """Snapshot of orchestrator progress."""

    stage: ProcessingStage
    progress: float
    message: str
    current_item: str | None = None


@dataclass(frozen=True, slots=True)
class NarratorModeConfig:
    """Single-narrator pipeline settings.

    Attributes:
        voice: Voice used for every segment.
        include_character_names: Whether dialogue is prefixed with its speaker name.
        character_name_style: `full` name, `short` (first word), or `none`.
    """

    voice: VoiceProfile = field(
        default_factory=lambda: find_voice_template(DEFAULT_NARRATOR_VOICE_ID)
    )
    include_character_names: bool = False
    character_name_style: CharacterNameStyle = "full"


@dataclass(frozen=True, slots=True)
class ProcessingOptions:
    """Per-run options accepted by the orchestrator.

    Attributes:
        output_format: Requested output format selector (`wav` or `mp3`).
        include_quality_analysis: Whether to run the optional quality stage.
        mode: `multi-voice` pipeline or single `narrator` pipeline.
        narrator: Narrator settings used when `mode` is `narrator`.
    """

    output_format: OutputFormat = "wav"
    include_quality_analysis: bool = False
    mode: ProcessingMode = "multi-voice"
    narrator: NarratorModeConfig = field(default_factory=NarratorModeConfig)

    def __post_init__(self) -> None:
        """Reject unknown mode and format selectors."""

        if self.mode not in PROCESSING_MODES:
            raise ValueError(f"Unsupported processing mode `{self.mode}`.")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format `{self.output_format}`.")
