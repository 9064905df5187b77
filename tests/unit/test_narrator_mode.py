"""Unit tests for single-narrator pipeline runs."""

from __future__ import annotations

import asyncio
import io

import pytest

from storyvoice.models.datatypes import NarratorModeConfig, ProcessingOptions
from storyvoice.pipeline import StoryOrchestrator
from storyvoice.registry import AUDIO_GENERATOR, CHARACTER_DETECTOR, VOICE_ASSIGNER
from storyvoice.telemetry.logger import RunLogger
from storyvoice.tts.voices import find_voice_template
from tests.stubs import StubAudioGenerator, make_registry, make_segment

_SEGMENTS = [
    make_segment(1, "Narrator", "The door creaked open.", kind="narration"),
    make_segment(2, "Alice Smith", "Who is there?"),
    make_segment(3, "Bob", "Only me."),
]


def _narrate(generator: StubAudioGenerator, narrator: NarratorModeConfig, **registry_kwargs):  # type: ignore[no-untyped-def]
    """Run the orchestrator in narrator mode without detector or assigner."""

    orchestrator = StoryOrchestrator(
        make_registry(
            _SEGMENTS,
            generator=generator,
            omit=(CHARACTER_DETECTOR, VOICE_ASSIGNER),
            **registry_kwargs,
        )
    )
    options = ProcessingOptions(mode="narrator", narrator=narrator)
    return orchestrator, asyncio.run(orchestrator.process_story("story", options))


def test_narrator_mode_uses_one_voice_without_detection_or_assignment() -> None:
    """Every segment is voiced by the narrator and the skipped stages are not required."""

    generator = StubAudioGenerator()
    narrator_voice = find_voice_template("narrator-2")

    _, result = _narrate(generator, NarratorModeConfig(voice=narrator_voice))

    assert result.succeeded is True
    assert len(result.value.segments) == 3
    assert {voice.voice_id for voice in generator.voices} == {"narrator-2"}
    assert result.metadata["characters"] == 3
    assert generator.texts == [segment.content for segment in _SEGMENTS]


def test_narrator_mode_logs_skipped_stages() -> None:
    """Detection and assignment are logged as skipped."""

    sink = io.StringIO()
    run_logger = RunLogger(sink=sink)
    orchestrator = StoryOrchestrator(
        make_registry(_SEGMENTS, omit=(CHARACTER_DETECTOR, VOICE_ASSIGNER)),
        run_logger=run_logger,
    )

    asyncio.run(orchestrator.process_story("story", ProcessingOptions(mode="narrator")))
    run_logger.close()

    assert "stage=detecting event=skipped reason=narrator_mode" in sink.getvalue()
    assert "stage=assigning event=skipped reason=narrator_mode" in sink.getvalue()


@pytest.mark.parametrize(
    ("style", "expected_dialogue"),
    [
        ("full", ["Alice Smith: Who is there?", "Bob: Only me."]),
        ("short", ["Alice: Who is there?", "Bob: Only me."]),
        ("none", ["Who is there?", "Only me."]),
    ],
)
def test_character_names_prefix_dialogue_by_style(style: str, expected_dialogue: list[str]) -> None:
    """Dialogue is prefixed per name style; narration is never prefixed."""

    generator = StubAudioGenerator()
    narrator = NarratorModeConfig(include_character_names=True, character_name_style=style)  # type: ignore[arg-type]

    _narrate(generator, narrator)

    assert generator.texts[0] == "The door creaked open."
    assert generator.texts[1:] == expected_dialogue


def test_character_names_are_not_added_unless_requested() -> None:
    """Without `include_character_names` the text is spoken as written."""

    generator = StubAudioGenerator()

    _narrate(generator, NarratorModeConfig(character_name_style="full"))

    assert generator.texts == [segment.content for segment in _SEGMENTS]


def test_narrator_mode_still_requires_an_audio_generator() -> None:
    """Pre-flight in narrator mode checks only the capabilities it uses."""

    orchestrator = StoryOrchestrator(
        make_registry(_SEGMENTS, omit=(CHARACTER_DETECTOR, VOICE_ASSIGNER, AUDIO_GENERATOR))
    )

    result = asyncio.run(orchestrator.process_story("story", ProcessingOptions(mode="narrator")))

    assert result.succeeded is False
    assert result.error_message == "AudioGenerator not registered"


def test_processing_options_reject_unknown_mode() -> None:
    """Options validate mode and format selectors on construction."""

    with pytest.raises(ValueError, match="Unsupported processing mode"):
        ProcessingOptions(mode="chorus")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="Unsupported output format"):
        ProcessingOptions(output_format="flac")  # type: ignore[arg-type]
