"""Heuristic character detection over analyzed segments.

Responsibilities:
- Aggregate speaker occurrences into `Character` records.
- Infer light-weight traits and emotional states from dialogue content.
- Mark primary characters by frequency or early appearance.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
import re

from ..models.datatypes import NARRATOR_SPEAKER, Character, TextSegment
from ..result import Result, Success

_NARRATOR_TRAITS = ("storyteller", "neutral", "observant")
_SHOUTING_RE = re.compile(r"[A-Z]{3,}")

_EMOTION_KEYWORDS = {
    "polite": ("please", "sorry", "thank"),
    "frustrated": ("damn", "hell", "ugh"),
    "afraid": ("afraid", "scared", "help"),
}


@dataclass(slots=True)
class _CharacterTally:
    """Mutable accumulator used while scanning segments."""

    name: str
    first_occurrence: int
    occurrences: int = 0
    emotions: Counter[str] = field(default_factory=Counter)


def segment_emotions(segment: TextSegment) -> list[str]:
    """Return emotional states suggested by one segment's content and mood."""

    emotions: list[str] = []
    content = segment.content.lower()
    if segment.kind != "narration":
        if "!" in content:
            emotions.append("excited")
        if "?" in content:
            emotions.append("curious")
        if _SHOUTING_RE.search(segment.content):
            emotions.append("angry")
        for emotion, keywords in _EMOTION_KEYWORDS.items():
            if any(keyword in content for keyword in keywords):
                emotions.append(emotion)
    if segment.mood:
        emotions.append(segment.mood)
    return emotions


class CharacterDetectionSystem:
    """Derive characters from speaker labels of analyzed segments."""

    def __init__(self, primary_share: float = 0.1, early_segments: int = 3) -> None:
        """Initialize primary-character thresholds."""

        self._primary_share = primary_share
        self._early_segments = early_segments

    async def detect_characters(
        self, segments: Sequence[TextSegment]
    ) -> Result[list[Character]]:
        """Detect characters referenced by the segments."""

        tallies: dict[str, _CharacterTally] = {}
        for index, segment in enumerate(segments):
            tally = tallies.get(segment.speaker)
            if tally is None:
                tally = _CharacterTally(name=segment.speaker, first_occurrence=index)
                tallies[segment.speaker] = tally
            tally.occurrences += 1
            if segment.speaker != NARRATOR_SPEAKER:
                tally.emotions.update(segment_emotions(segment))

        threshold = max(2, int(len(segments) * self._primary_share))
        characters = [self._build_character(tally, threshold) for tally in tallies.values()]
        characters.sort(
            key=lambda character: (
                not character.is_primary,
                -character.occurrences,
                character.first_occurrence,
            )
        )
        return Success(
            characters,
            metadata={
                "total_characters": len(characters),
                "primary_characters": sum(1 for c in characters if c.is_primary),
                "total_segments": len(segments),
            },
        )

    def _build_character(self, tally: _CharacterTally, threshold: int) -> Character:
        """Freeze one tally into a `Character` record."""

        if tally.name == NARRATOR_SPEAKER:
            return Character(
                name=tally.name,
                occurrences=tally.occurrences,
                traits=_NARRATOR_TRAITS,
                emotional_states=("neutral",),
                is_primary=True,
                first_occurrence=tally.first_occurrence,
            )

        is_primary = (
            tally.occurrences >= threshold or tally.first_occurrence < self._early_segments
        )
        traits: list[str] = []
        if tally.occurrences > 2:
            traits.append("protagonist")
        if tally.emotions:
            dominant, count = tally.emotions.most_common(1)[0]
            if count > 1:
                traits.append(dominant)
        return Character(
            name=tally.name,
            occurrences=tally.occurrences,
            traits=tuple(traits),
            emotional_states=tuple(tally.emotions),
            is_primary=is_primary,
            first_occurrence=tally.first_occurrence,
        )
