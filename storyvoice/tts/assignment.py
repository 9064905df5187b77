"""Template-based voice assignment.

Responsibilities:
- Pick one catalog template per character from name, traits, and emotions.
- Keep templates unique across characters while alternatives remain.
- Customize pitch/speed per character and score assignment confidence.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..models.datatypes import NARRATOR_SPEAKER, Character, VoiceAssignment
from ..result import Failure, Result, Success
from .voices import (
    DEFAULT_NARRATOR_VOICE_ID,
    VOICE_TEMPLATES,
    VoiceAge,
    VoiceGender,
    VoiceProfile,
    VoiceTone,
    find_voice_template,
)

_FEMALE_NAMES = ("sarah", "emma", "grace", "lily", "anna", "maria", "lisa", "kate", "amy", "eve")
_MALE_NAMES = (
    "john", "david", "robert", "tommy", "michael", "james", "william", "daniel", "thomas", "mark",
)
_AGE_TRAITS: tuple[tuple[VoiceAge, frozenset[str]], ...] = (
    ("child", frozenset({"child", "kid", "little"})),
    ("young", frozenset({"teenager", "teen", "youth", "young"})),
    ("elderly", frozenset({"old", "elderly", "senior", "aged"})),
)
_TONE_EMOTIONS: tuple[tuple[VoiceTone, frozenset[str]], ...] = (
    ("dramatic", frozenset({"angry", "frustrated", "dramatic", "intense"})),
    ("warm", frozenset({"happy", "warm", "kind", "gentle", "caring", "polite"})),
    ("cold", frozenset({"cold", "distant", "harsh", "stern"})),
)


def infer_gender(name: str) -> VoiceGender:
    """Guess a voice gender from a character name."""

    lowered = name.lower()
    if any(candidate in lowered for candidate in _FEMALE_NAMES):
        return "female"
    if any(candidate in lowered for candidate in _MALE_NAMES):
        return "male"
    if lowered.endswith(("a", "e", "i")):
        return "female"
    return "neutral"


def infer_age(traits: Sequence[str]) -> VoiceAge:
    """Guess a voice age bracket from character traits."""

    lowered = {trait.lower() for trait in traits}
    for age, markers in _AGE_TRAITS:
        if lowered & markers:
            return age
    return "adult"


def infer_tone(emotional_states: Sequence[str]) -> VoiceTone:
    """Guess a delivery tone from emotional states."""

    lowered = {state.lower() for state in emotional_states}
    for tone, markers in _TONE_EMOTIONS:
        if lowered & markers:
            return tone
    return "neutral"


def _pitch_for(base: float, emotional_states: Sequence[str]) -> float:
    """Adjust template pitch for a character's emotional states."""

    pitch = base
    if "excited" in emotional_states:
        pitch += 0.05
    if "sad" in emotional_states:
        pitch -= 0.05
    if "angry" in emotional_states:
        pitch += 0.1
    return pitch


def _speed_for(base: float, emotional_states: Sequence[str]) -> float:
    """Adjust template speed for a character's emotional states."""

    speed = base
    if "excited" in emotional_states:
        speed += 0.1
    if "nervous" in emotional_states:
        speed += 0.05
    if "sad" in emotional_states:
        speed -= 0.1
    return speed


class VoiceAssignmentLogic:
    """Assign catalog-derived voices to detected characters."""

    def __init__(self, narrator_voice_id: str = DEFAULT_NARRATOR_VOICE_ID) -> None:
        """Initialize with the catalog template reserved for the narrator."""

        self._narrator_template = find_voice_template(narrator_voice_id)

    async def assign_voices(
        self, characters: Sequence[Character]
    ) -> Result[list[VoiceAssignment]]:
        """Assign voices to characters, primary characters first."""

        ordered = sorted(
            characters,
            key=lambda character: (not character.is_primary, -character.occurrences),
        )
        used_templates: set[str] = {self._narrator_template.voice_id}
        assignments: list[VoiceAssignment] = []
        for character in ordered:
            if character.name == NARRATOR_SPEAKER:
                voice = self._narrator_template
            else:
                template = self._pick_template(character, used_templates)
                used_templates.add(template.voice_id)
                voice = template.customized(
                    voice_id=f"{character.name.lower().replace(' ', '-')}-voice",
                    name=f"{character.name} Voice",
                    pitch=_pitch_for(template.pitch, character.emotional_states),
                    speed=_speed_for(template.speed, character.emotional_states),
                )
            assignments.append(
                VoiceAssignment(
                    character=character.name,
                    voice=voice,
                    confidence=self._confidence(character, voice),
                )
            )

        problem = self._validation_problem(assignments)
        if problem is not None:
            return Failure(f"Voice assignment validation failed: {problem}")

        return Success(
            assignments,
            metadata={
                "total_assignments": len(assignments),
                "unique_templates": len(used_templates),
                "average_confidence": (
                    sum(a.confidence for a in assignments) / len(assignments)
                    if assignments
                    else 0.0
                ),
            },
        )

    def _pick_template(self, character: Character, used: set[str]) -> VoiceProfile:
        """Choose the best-matching template, preferring ones not yet used."""

        gender = infer_gender(character.name)
        age = infer_age(character.traits)
        tone = infer_tone(character.emotional_states)
        candidates = [
            template
            for template in VOICE_TEMPLATES
            if not template.voice_id.startswith("narrator")
            and template.gender in {gender, "neutral"}
            and template.age in {age, "adult"}
        ]
        candidates.sort(
            key=lambda template: (
                template.voice_id in used,
                template.tone != tone,
                template.gender != gender,
                template.age != age,
            )
        )
        if candidates and candidates[0].voice_id not in used:
            return candidates[0]

        unused = [
            template
            for template in VOICE_TEMPLATES
            if template.voice_id not in used and not template.voice_id.startswith("narrator")
        ]
        if unused:
            unused.sort(key=lambda template: (template.gender != gender, template.age != age))
            return unused[0]
        return candidates[0] if candidates else VOICE_TEMPLATES[0]

    @staticmethod
    def _confidence(character: Character, voice: VoiceProfile) -> float:
        """Score how well a voice fits a character, in `[0, 1]`."""

        if character.name == NARRATOR_SPEAKER:
            return 0.95
        confidence = 0.7
        if voice.gender in {infer_gender(character.name), "neutral"}:
            confidence += 0.1
        if character.is_primary:
            confidence += 0.1
        if character.occurrences > 5:
            confidence += 0.05
        return min(1.0, confidence)

    @staticmethod
    def _validation_problem(assignments: Sequence[VoiceAssignment]) -> str | None:
        """Return a description of the first invalid assignment, if any."""

        seen: set[str] = set()
        for assignment in assignments:
            if assignment.voice.voice_id in seen:
                return f"duplicate voice `{assignment.voice.voice_id}`"
            seen.add(assignment.voice.voice_id)
            if not 0.0 <= assignment.confidence <= 1.0:
                return f"invalid confidence for character {assignment.character}"
        return None
