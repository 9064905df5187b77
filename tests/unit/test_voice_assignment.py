"""Unit tests for template-based voice assignment."""

from __future__ import annotations

import asyncio

from storyvoice.models.datatypes import Character
from storyvoice.tts.assignment import VoiceAssignmentLogic, infer_age, infer_gender, infer_tone


def _assign(characters, narrator_voice_id: str = "narrator-1"):  # type: ignore[no-untyped-def]
    """Run assignment synchronously."""

    return asyncio.run(VoiceAssignmentLogic(narrator_voice_id).assign_voices(characters))


def test_every_character_gets_a_unique_voice() -> None:
    """Assignments cover every character with distinct voice ids."""

    characters = [
        Character("Narrator", 4, is_primary=True),
        Character("Sarah", 3, is_primary=True),
        Character("John", 2, is_primary=True, first_occurrence=1),
        Character("Maria", 1, first_occurrence=5),
    ]

    result = _assign(characters)

    assert result.succeeded is True
    assignments = {assignment.character: assignment for assignment in result.value}
    assert set(assignments) == {"Narrator", "Sarah", "John", "Maria"}
    voice_ids = [assignment.voice.voice_id for assignment in result.value]
    assert len(voice_ids) == len(set(voice_ids))
    assert all(0.0 <= assignment.confidence <= 1.0 for assignment in result.value)


def test_narrator_keeps_the_configured_template() -> None:
    """The narrator speaks with the configured narrator template."""

    result = _assign([Character("Narrator", 1, is_primary=True)], narrator_voice_id="narrator-2")

    (assignment,) = result.value
    assert assignment.voice.voice_id == "narrator-2"
    assert assignment.confidence == 0.95


def test_character_voices_follow_name_gender_and_are_customized() -> None:
    """Female and male names map to matching templates under character-specific ids."""

    result = _assign([Character("Sarah", 2), Character("John", 2)])

    voices = {assignment.character: assignment.voice for assignment in result.value}
    assert voices["Sarah"].gender == "female"
    assert voices["John"].gender == "male"
    assert voices["Sarah"].voice_id == "sarah-voice"
    assert voices["John"].name == "John Voice"


def test_emotions_adjust_pitch_and_speed_within_bounds() -> None:
    """Excited characters speak faster and higher than the same template at rest."""

    calm = _assign([Character("Lily", 1)]).value[0].voice
    excited = _assign([Character("Lily", 1, emotional_states=("excited",))]).value[0].voice

    assert excited.speed > calm.speed
    assert excited.pitch > calm.pitch
    assert 0.5 <= excited.pitch <= 2.0
    assert 0.5 <= excited.speed <= 1.5


def test_inference_helpers() -> None:
    """Gender, age, and tone guesses read names, traits, and emotions."""

    assert infer_gender("Emma") == "female"
    assert infer_gender("David") == "male"
    assert infer_gender("Zed") == "neutral"
    assert infer_age(("Elderly",)) == "elderly"
    assert infer_age(()) == "adult"
    assert infer_tone(("angry",)) == "dramatic"
    assert infer_tone(("polite",)) == "warm"
    assert infer_tone(()) == "neutral"
