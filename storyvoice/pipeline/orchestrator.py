"""Pipeline orchestration for Storyvoice.

Responsibilities:
- Drive the registered stages in order for one story at a time.
- Own the processing status snapshot and the cooperative cancel flag.
- Convert every stage failure or stray exception into a `Failure` envelope.

Key types:
- `StoryOrchestrator`: run entry point plus status/cancel surface.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection, Sequence
from dataclasses import replace
import threading
import time
from typing import TypeVar

from ..errors import (
    CANCELLED_BY_USER,
    CapabilityNotRegisteredError,
    PipelineStageError,
    RunCancelledError,
    UnexpectedStageError,
    UnresolvedSpeakerError,
)
from ..models.datatypes import (
    NARRATOR_SPEAKER,
    AudioOutput,
    AudioSegment,
    ProcessingOptions,
    ProcessingStage,
    ProcessingStatus,
    TextSegment,
)
from ..registry import (
    AUDIO_GENERATOR,
    AUDIO_OPTIMIZER,
    CHARACTER_DETECTOR,
    MANDATORY_CAPABILITIES,
    QUALITY_ANALYZER,
    TEXT_ANALYZER,
    VOICE_ASSIGNER,
    ServiceRegistry,
)
from ..result import Failure, Result, Success
from ..stages import (
    AudioGenerator,
    AudioOptimizer,
    CharacterDetector,
    QualityAnalyzer,
    TextAnalyzer,
    VoiceAssigner,
)
from ..telemetry.logger import RunLogger
from ..tts.voices import VoiceProfile
from .cancellation import CancellationToken
from .telemetry import PipelineTelemetryMixin

_StageValue = TypeVar("_StageValue")

NARRATOR_CAPABILITIES: tuple[str, ...] = (TEXT_ANALYZER, AUDIO_GENERATOR, AUDIO_OPTIMIZER)
DEFAULT_OPTIMIZE_SEGMENT_THRESHOLD = 5
DEFAULT_OPTIMIZE_FORMATS = frozenset({"mp3"})

_READY_STATUS = ProcessingStatus(stage="analyzing", progress=0.0, message="Ready to process")


class StoryOrchestrator(PipelineTelemetryMixin):
    """Run the story-to-audio pipeline over registry-bound stages.

    One run may be active per instance. `get_processing_status` and
    `cancel_processing` are synchronous and safe to call from other threads
    or tasks while `process_story` is awaiting a stage.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        *,
        run_logger: RunLogger | None = None,
        stage_progress_callback: Callable[[str, int, int], None] | None = None,
        optimize_segment_threshold: int = DEFAULT_OPTIMIZE_SEGMENT_THRESHOLD,
        optimize_formats: Collection[str] = DEFAULT_OPTIMIZE_FORMATS,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize orchestrator state around an already-populated registry."""

        self._registry = registry
        self._run_logger = run_logger
        self._stage_progress_callback = stage_progress_callback
        self._optimize_segment_threshold = optimize_segment_threshold
        self._optimize_formats = frozenset(optimize_formats)
        self._clock = clock
        self._state_lock = threading.Lock()
        self._active = False
        self._token: CancellationToken | None = None
        self._status = _READY_STATUS
        self._stage_in_flight = "analyzing"

    @property
    def is_processing(self) -> bool:
        """Return whether a run is currently active."""

        with self._state_lock:
            return self._active

    @property
    def current_stage(self) -> ProcessingStage:
        """Return the stage recorded in the latest status snapshot."""

        with self._state_lock:
            return self._status.stage

    def get_processing_status(self) -> Success[ProcessingStatus]:
        """Return a snapshot of the current processing status."""

        with self._state_lock:
            return Success(replace(self._status))

    def cancel_processing(self) -> Result[bool]:
        """Request cooperative cancellation of the active run."""

        with self._state_lock:
            token = self._token
            if not self._active or token is None:
                return Failure("No processing in progress to cancel")
            token.cancel()
            self._status = ProcessingStatus(stage="error", progress=0.0, message=CANCELLED_BY_USER)
            stage = self._stage_in_flight
        if self._run_logger is not None:
            self._run_logger.log_warning(stage, "cancel_requested")
        return Success(True, metadata={"cancelled_at": time.time()})

    async def process_story(
        self,
        text: str,
        options: ProcessingOptions | None = None,
    ) -> Result[AudioOutput]:
        """Run the full pipeline for one story and return its audio output."""

        with self._state_lock:
            if self._active:
                return Failure("Processing already in progress", metadata={"error_kind": "busy"})
            self._active = True
            token = CancellationToken()
            self._token = token
            self._stage_in_flight = "analyzing"
            self._status = replace(_READY_STATUS, message="Starting story processing")

        run_options = options or ProcessingOptions()
        started = self._clock()
        try:
            output, segment_count, character_count = await self._execute(
                text, run_options, token
            )
            elapsed = self._clock() - started
            output = replace(
                output,
                metadata=replace(output.metadata, processing_time_seconds=elapsed),
            )
            self._finalize_success(token, segment_count)
            if self._run_logger is not None:
                self._run_logger.log_run_summary(
                    "complete",
                    segments=segment_count,
                    characters=character_count,
                    mode=run_options.mode,
                )
            return Success(
                output,
                metadata={
                    "processing_time_seconds": elapsed,
                    "segments": segment_count,
                    "characters": character_count,
                    "duration_seconds": output.duration_seconds,
                },
            )
        except Exception as exc:
            return self._finalize_failure(token, exc)
        finally:
            with self._state_lock:
                # A successful run already released the slot, possibly to a newer run.
                if self._token is token:
                    self._active = False
                    self._token = None

    async def _execute(
        self,
        text: str,
        options: ProcessingOptions,
        token: CancellationToken,
    ) -> tuple[AudioOutput, int, int]:
        """Drive every stage in order and return output plus run counts."""

        narrator_mode = options.mode == "narrator"
        required = NARRATOR_CAPABILITIES if narrator_mode else MANDATORY_CAPABILITIES
        missing = self._registry.missing_capabilities(required)
        if missing:
            raise CapabilityNotRegisteredError(", ".join(missing))

        segments = await self._analyze(text, token)
        if narrator_mode:
            self._on_stage_skipped("detecting", "narrator_mode")
            self._on_stage_skipped("assigning", "narrator_mode")
            segments = self._narrator_segments(segments, options)
            voice_map = {segment.speaker: options.narrator.voice for segment in segments}
            character_count = len(voice_map)
            self._update_status(
                token,
                "assigning",
                80.0,
                f"Narrator mode: using {options.narrator.voice.name} for every segment",
            )
        else:
            voice_map, character_count = await self._detect_and_assign(segments, token)

        audio_segments = await self._generate(segments, voice_map, token)
        output = await self._combine(audio_segments, token)
        output = await self._optimize(output, options, token)
        if options.include_quality_analysis:
            output = await self._analyze_quality(text, output, token)
        return output, len(segments), character_count

    async def _analyze(self, text: str, token: CancellationToken) -> list[TextSegment]:
        """Run the analyzing stage."""

        self._update_status(token, "analyzing", 10.0, "Analyzing narrative structure...")
        token.raise_if_cancelled("analyzing")
        analyzer: TextAnalyzer = (
            self._registry.resolve(TEXT_ANALYZER)  # type: ignore[assignment]
        )
        segments = await self._call_stage(
            "analyzing",
            "Text analysis failed: ",
            lambda: analyzer.parse_text(text),
        )
        self._update_status(
            token, "analyzing", 25.0, f"Identified {len(segments)} text segments"
        )
        return list(segments)

    async def _detect_and_assign(
        self,
        segments: Sequence[TextSegment],
        token: CancellationToken,
    ) -> tuple[dict[str, VoiceProfile], int]:
        """Run detecting and assigning stages and build the speaker-to-voice map."""

        self._update_status(token, "detecting", 40.0, "Detecting characters and speakers...")
        token.raise_if_cancelled("detecting")
        detector: CharacterDetector = (
            self._registry.resolve(CHARACTER_DETECTOR)  # type: ignore[assignment]
        )
        characters = await self._call_stage(
            "detecting",
            "Character detection failed: ",
            lambda: detector.detect_characters(segments),
        )
        self._update_status(
            token, "detecting", 55.0, f"Found {len(characters)} unique characters"
        )

        self._update_status(token, "assigning", 70.0, "Assigning voices to characters...")
        token.raise_if_cancelled("assigning")
        assigner: VoiceAssigner = (
            self._registry.resolve(VOICE_ASSIGNER)  # type: ignore[assignment]
        )
        assignments = await self._call_stage(
            "assigning",
            "Voice assignment failed: ",
            lambda: assigner.assign_voices(characters),
        )
        voice_map = {assignment.character: assignment.voice for assignment in assignments}
        self._update_status(
            token, "assigning", 80.0, f"Assigned {len(assignments)} unique voices"
        )
        return voice_map, len(characters)

    async def _generate(
        self,
        segments: Sequence[TextSegment],
        voice_map: dict[str, VoiceProfile],
        token: CancellationToken,
    ) -> list[AudioSegment]:
        """Generate audio for every segment in textual order."""

        self._update_status(token, "generating", 85.0, "Generating audio segments...")
        token.raise_if_cancelled("generating")
        generator: AudioGenerator = (
            self._registry.resolve(AUDIO_GENERATOR)  # type: ignore[assignment]
        )
        total = len(segments)
        audio_segments: list[AudioSegment] = []

        async def generate_all() -> list[AudioSegment]:
            for index, segment in enumerate(segments):
                token.raise_if_cancelled("generating")
                voice = voice_map.get(segment.speaker)
                if voice is None:
                    raise UnresolvedSpeakerError(segment.speaker)
                self._update_status(
                    token,
                    "generating",
                    85.0 + (10.0 * index / total),
                    f"Generating audio for segment {index + 1}/{total}...",
                    current_item=segment.speaker,
                )
                audio_segment = await self._call_stage(
                    "generating",
                    f"Audio generation failed for segment {index + 1}/{total}: ",
                    lambda: generator.generate_segment_audio(segment, voice),
                    instrument=False,
                )
                audio_segments.append(audio_segment)
            return audio_segments

        return await self._run_stage("generating", generate_all)

    async def _combine(
        self,
        audio_segments: Sequence[AudioSegment],
        token: CancellationToken,
    ) -> AudioOutput:
        """Combine generated segments into one output."""

        self._update_status(token, "generating", 95.0, "Combining audio segments...")
        token.raise_if_cancelled("generating")
        generator: AudioGenerator = (
            self._registry.resolve(AUDIO_GENERATOR)  # type: ignore[assignment]
        )
        return await self._call_stage(
            "combining",
            "Audio combination failed: ",
            lambda: generator.combine_audio_segments(audio_segments),
        )

    def _should_optimize(self, output: AudioOutput, options: ProcessingOptions) -> bool:
        """Return whether the combined output qualifies for optimization."""

        return (
            options.output_format in self._optimize_formats
            or len(output.segments) > self._optimize_segment_threshold
        )

    async def _optimize(
        self,
        output: AudioOutput,
        options: ProcessingOptions,
        token: CancellationToken,
    ) -> AudioOutput:
        """Run optimization when requested; failures keep the combined output."""

        if not self._should_optimize(output, options):
            self._on_stage_skipped("optimizing", "below_threshold")
            return output

        self._update_status(token, "generating", 98.0, "Optimizing audio output...")
        token.raise_if_cancelled("generating")
        optimizer: AudioOptimizer = (
            self._registry.resolve(AUDIO_OPTIMIZER)  # type: ignore[assignment]
        )
        try:
            payload = await self._call_stage(
                "optimizing",
                "Audio optimization failed: ",
                lambda: optimizer.optimize_audio(output.audio),
            )
        except RunCancelledError:
            raise
        except PipelineStageError as exc:
            if self._run_logger is not None:
                self._run_logger.log_warning(
                    "optimizing", "optimization_skipped", error_type=type(exc).__name__
                )
            return output
        return replace(
            output,
            audio=payload,
            metadata=replace(output.metadata, optimized=True),
        )

    async def _analyze_quality(
        self,
        text: str,
        output: AudioOutput,
        token: CancellationToken,
    ) -> AudioOutput:
        """Attach a writing-quality report when an analyzer is registered."""

        analyzer: QualityAnalyzer | None = (
            self._registry.resolve_optional(QUALITY_ANALYZER)  # type: ignore[assignment]
        )
        if analyzer is None:
            self._on_stage_skipped("quality_check", "analyzer_not_registered")
            return output

        self._update_status(token, "quality_check", 99.0, "Analyzing writing quality...")
        token.raise_if_cancelled("quality_check")
        report = await self._call_stage(
            "quality_check",
            "Quality analysis failed: ",
            lambda: analyzer.analyze_quality(text),
        )
        return replace(output, metadata=replace(output.metadata, quality_report=report))

    async def _call_stage(
        self,
        stage: str,
        prefix: str,
        action: Callable[[], Awaitable[Result[_StageValue]]],
        *,
        instrument: bool = True,
    ) -> _StageValue:
        """Await one stage call and unwrap its envelope or raise a stage error."""

        async def unwrap() -> _StageValue:
            try:
                result = await action()
            except PipelineStageError as exc:
                raise PipelineStageError(
                    stage=stage, detail=f"{prefix}{exc.detail}", hint=exc.hint
                ) from exc
            except Exception as exc:
                raise UnexpectedStageError(stage=stage, detail=f"{prefix}{exc}") from exc
            if not result.succeeded:
                hint = result.metadata.get("hint")
                raise PipelineStageError(
                    stage=stage,
                    detail=f"{prefix}{result.error_message}",
                    hint=hint if isinstance(hint, str) else None,
                )
            return result.value

        with self._state_lock:
            self._stage_in_flight = stage
        if instrument:
            return await self._run_stage(stage, unwrap)
        return await unwrap()

    def _narrator_segments(
        self,
        segments: Sequence[TextSegment],
        options: ProcessingOptions,
    ) -> list[TextSegment]:
        """Prefix dialogue with speaker names when narrator settings request it."""

        narrator = options.narrator
        if not narrator.include_character_names or narrator.character_name_style == "none":
            return list(segments)

        prefixed: list[TextSegment] = []
        for segment in segments:
            if segment.kind == "narration" or segment.speaker == NARRATOR_SPEAKER:
                prefixed.append(segment)
                continue
            label = segment.speaker
            if narrator.character_name_style == "short":
                label = label.split()[0] if label.split() else label
            prefixed.append(replace(segment, content=f"{label}: {segment.content}"))
        return prefixed

    def _update_status(
        self,
        token: CancellationToken,
        stage: ProcessingStage,
        progress: float,
        message: str,
        current_item: str | None = None,
    ) -> None:
        """Overwrite the status snapshot unless cancellation was requested."""

        with self._state_lock:
            if token.cancelled:
                return
            self._stage_in_flight = stage
            self._status = ProcessingStatus(
                stage=stage,
                progress=progress,
                message=message,
                current_item=current_item,
            )

    def _finalize_success(self, token: CancellationToken, segment_count: int) -> None:
        """Run the final checkpoint and publish the complete status atomically.

        The run stops being active in the same critical section, so a late cancel
        request is rejected instead of overwriting the complete status.
        """

        with self._state_lock:
            if token.cancelled:
                raise RunCancelledError("complete")
            self._status = ProcessingStatus(
                stage="complete",
                progress=100.0,
                message=f"Story audio complete ({segment_count} segments)",
            )
            self._active = False
            self._token = None

    def _finalize_failure(self, token: CancellationToken, exc: Exception) -> Failure:
        """Publish the error status and convert an exception into a `Failure`."""

        if token.cancelled and not isinstance(exc, RunCancelledError):
            if self._run_logger is not None:
                self._run_logger.log_warning(
                    self._stage_in_flight,
                    "error_after_cancel",
                    error_type=type(exc).__name__,
                )
            exc = RunCancelledError(self._stage_in_flight)

        hint: str | None = None
        if isinstance(exc, PipelineStageError):
            message = exc.detail
            stage = exc.stage
            error_kind = exc.error_kind
            hint = exc.hint
        else:
            message = str(exc) or type(exc).__name__
            stage = self._stage_in_flight
            error_kind = "unexpected"

        with self._state_lock:
            # A cancel request already published its own error status.
            if not token.cancelled:
                self._status = ProcessingStatus(stage="error", progress=0.0, message=message)

        if self._run_logger is not None:
            self._run_logger.log_run_summary(error_kind, failed_stage=stage)
        metadata: dict[str, object] = {"stage": stage, "error_kind": error_kind}
        if hint:
            metadata["hint"] = hint
        return Failure(message, metadata=metadata)
