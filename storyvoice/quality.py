"""Writing-quality analysis of story text.

Responsibilities:
- Count words and sentences and measure the quoted-dialogue share.
- Score readability with the Flesch reading-ease formula.
- Flag "telling" phrases that narrate feelings instead of showing them.
"""

from __future__ import annotations

import re

from .models.datatypes import QualityReport
from .result import Failure, Result, Success

_WORD_RE = re.compile(r"[A-Za-z]+(?:'[A-Za-z]+)?")
_SENTENCE_END_RE = re.compile(r"[.!?]+(?=\s|$|[\"”])")
_QUOTE_RE = re.compile(r"[\"“][^\"“”]*[\"”]")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")
_TELLING_RE = re.compile(
    r"\b(?:was|were) (?:feeling|seeing|hearing)\b"
    r"|\b(?:he|she|they|i) (?:felt|saw|heard|noticed|realized)\b",
    re.IGNORECASE,
)


def count_syllables(word: str) -> int:
    """Approximate English syllables by counting vowel groups."""

    lowered = word.lower()
    groups = len(_VOWEL_GROUP_RE.findall(lowered))
    if lowered.endswith("e") and not lowered.endswith(("le", "ee")) and groups > 1:
        groups -= 1
    return max(1, groups)


class WritingQualityAnalyzer:
    """`QualityAnalyzer` implementation based on plain-text statistics."""

    async def analyze_quality(self, text: str) -> Result[QualityReport]:
        """Analyze input text and return a quality report."""

        words = _WORD_RE.findall(text)
        if not words:
            return Failure("Text contains no words to analyze")

        sentence_count = max(1, len(_SENTENCE_END_RE.findall(text)))
        dialogue_words = sum(len(_WORD_RE.findall(quote)) for quote in _QUOTE_RE.findall(text))
        syllables = sum(count_syllables(word) for word in words)
        reading_ease = (
            206.835
            - 1.015 * (len(words) / sentence_count)
            - 84.6 * (syllables / len(words))
        )
        telling = tuple(match.group(0) for match in _TELLING_RE.finditer(text))
        return Success(
            QualityReport(
                word_count=len(words),
                sentence_count=sentence_count,
                dialogue_ratio=round(dialogue_words / len(words), 4),
                reading_ease=round(reading_ease, 2),
                telling_phrases=telling,
            )
        )
