"""Dialogue-aware text analysis.

Responsibilities:
- Split narrative text into ordered narration, dialogue, and thought segments.
- Attribute each quoted passage to a speaker using nearby speech tags.

Key types:
- `TextAnalysisEngine`: `TextAnalyzer` implementation.
- `SpeechTag`: one attribution match near a quoted passage.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from ..models.datatypes import NARRATOR_SPEAKER, SegmentKind, TextSegment
from ..result import Failure, Result, Success

UNKNOWN_SPEAKER = "Unknown"

SPEECH_VERBS = (
    "said", "asked", "replied", "answered", "whispered", "shouted", "exclaimed",
    "declared", "stated", "remarked", "added", "continued", "interrupted",
    "mumbled", "muttered", "gasped", "sighed", "laughed", "cried", "sobbed",
    "screamed", "yelled", "called", "announced", "insisted", "demanded",
    "pleaded", "begged", "suggested", "promised", "warned", "explained",
    "admitted", "agreed", "argued", "protested", "complained", "groaned",
    "chuckled", "giggled", "snapped", "growled", "stammered", "stuttered",
)
THOUGHT_VERBS = (
    "thought", "wondered", "pondered", "mused", "reflected", "realized",
    "wished", "hoped", "feared", "worried", "imagined", "remembered",
)

_MOOD_BY_VERB = {
    "shouted": "angry", "yelled": "angry", "screamed": "angry", "snapped": "angry",
    "growled": "angry", "demanded": "angry",
    "whispered": "nervous", "muttered": "nervous", "mumbled": "nervous",
    "stammered": "nervous", "stuttered": "nervous",
    "laughed": "happy", "giggled": "happy", "chuckled": "happy",
    "cried": "sad", "sobbed": "sad", "sighed": "sad", "groaned": "sad",
    "exclaimed": "excited", "announced": "excited",
    "feared": "nervous", "worried": "nervous",
}

# Capitalized words that start sentences or stand in for names.
_NON_NAMES = frozenset({
    "He", "She", "They", "It", "I", "We", "You", "The", "A", "An", "His", "Her",
    "Their", "Then", "And", "But", "Or", "So", "This", "That", "There", "When",
    "Someone", "Everyone", "Nobody",
})

_VERB_ALTERNATION = "|".join(SPEECH_VERBS + THOUGHT_VERBS)
_QUOTE_RE = re.compile(r"[\"“]([^\"“”]+)[\"”]")
_TAG_BEFORE_RE = re.compile(
    rf"\b([A-Z][a-z]+)\s+(?:[a-z]+ly\s+)?({_VERB_ALTERNATION})\b[^.!?\"“”]*[,:]\s*$"
)
_TAG_AFTER_RE = re.compile(
    rf"^\s*(?:([A-Z][a-z]+)\s+(?:[a-z]+ly\s+)?({_VERB_ALTERNATION})"
    rf"|({_VERB_ALTERNATION})\s+([A-Z][a-z]+))\b"
)
_TAG_WINDOW_CHARS = 60


@dataclass(frozen=True, slots=True)
class SpeechTag:
    """Attribution tag found next to a quoted passage."""

    speaker: str
    verb: str

    @property
    def kind(self) -> SegmentKind:
        """Return `thought` for thought verbs and `dialogue` otherwise."""

        return "thought" if self.verb in THOUGHT_VERBS else "dialogue"

    @property
    def mood(self) -> str | None:
        """Return the mood implied by the tag verb, if any."""

        return _MOOD_BY_VERB.get(self.verb)


def _speaker_name(candidate: str | None) -> str | None:
    """Return a usable speaker name, rejecting pronouns and function words."""

    if candidate is None or candidate in _NON_NAMES:
        return None
    return candidate


def find_tag_before(text: str, quote_start: int) -> SpeechTag | None:
    """Find a `Name said,` tag that introduces the quote starting at `quote_start`."""

    window = text[max(0, quote_start - _TAG_WINDOW_CHARS) : quote_start]
    match = _TAG_BEFORE_RE.search(window)
    if match is None:
        return None
    speaker = _speaker_name(match.group(1))
    if speaker is None:
        return None
    return SpeechTag(speaker=speaker, verb=match.group(2).lower())


def find_tag_after(text: str, quote_end: int) -> SpeechTag | None:
    """Find a `Name said` or `said Name` tag that follows the quote ending at `quote_end`."""

    window = text[quote_end : quote_end + _TAG_WINDOW_CHARS]
    match = _TAG_AFTER_RE.match(window)
    if match is None:
        return None
    if match.group(1) is not None:
        speaker, verb = match.group(1), match.group(2)
    else:
        verb, speaker = match.group(3), match.group(4)
    name = _speaker_name(speaker)
    if name is None:
        return None
    return SpeechTag(speaker=name, verb=verb.lower())


class TextAnalysisEngine:
    """Segment text into narration and attributed quoted passages."""

    async def parse_text(self, text: str) -> Result[list[TextSegment]]:
        """Parse input text into ordered segments."""

        if not text or not text.strip():
            return Failure("Input text is empty")

        segments: list[TextSegment] = []
        cursor = 0
        for match in _QUOTE_RE.finditer(text):
            self._append_narration(segments, text, cursor, match.start())
            content = match.group(1).strip()
            if content:
                tag = self._attribute(text, match.start(), match.end(), content)
                segments.append(
                    TextSegment(
                        segment_id=f"segment-{len(segments)}",
                        content=content,
                        speaker=tag.speaker if tag else UNKNOWN_SPEAKER,
                        kind=tag.kind if tag else "dialogue",
                        start_offset=match.start(),
                        end_offset=match.end(),
                        mood=tag.mood if tag else None,
                    )
                )
            cursor = match.end()
        self._append_narration(segments, text, cursor, len(text))

        return Success(
            segments,
            metadata={
                "total_segments": len(segments),
                "dialogue_segments": sum(1 for s in segments if s.kind == "dialogue"),
                "thought_segments": sum(1 for s in segments if s.kind == "thought"),
                "narration_segments": sum(1 for s in segments if s.kind == "narration"),
            },
        )

    @staticmethod
    def _attribute(text: str, start: int, end: int, content: str) -> SpeechTag | None:
        """Pick the speech tag for one quote.

        A lead-in tag (`Sarah said, "..."`) wins. A trailing tag only applies
        when the quote does not close its own sentence with a period.
        """

        tag = find_tag_before(text, start)
        if tag is not None:
            return tag
        if content.endswith("."):
            return None
        return find_tag_after(text, end)

    @staticmethod
    def _append_narration(
        segments: list[TextSegment], text: str, start: int, end: int
    ) -> None:
        """Append the non-empty narration span `text[start:end]`."""

        span = text[start:end]
        content = span.strip()
        if not content:
            return
        leading = len(span) - len(span.lstrip())
        segment_start = start + leading
        segments.append(
            TextSegment(
                segment_id=f"segment-{len(segments)}",
                content=content,
                speaker=NARRATOR_SPEAKER,
                kind="narration",
                start_offset=segment_start,
                end_offset=segment_start + len(content),
            )
        )
