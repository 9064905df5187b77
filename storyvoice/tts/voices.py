"""Voice profile models and the bundled voice catalog.

Responsibilities:
- Represent provider-neutral voice identities and tuning metadata.
- Provide the template catalog used by voice assignment and narrator mode.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

VoiceGender = Literal["male", "female", "neutral"]
VoiceAge = Literal["child", "young", "adult", "elderly"]
VoiceTone = Literal["warm", "cold", "neutral", "dramatic"]

DEFAULT_NARRATOR_VOICE_ID = "narrator-1"


@dataclass(frozen=True, slots=True)
class VoiceProfile:
    """Declarative voice profile consumed by speech backends.

    Attributes:
        voice_id: Stable profile identifier.
        name: Human-readable profile name.
        gender: Perceived voice gender (`male`, `female`, `neutral`).
        age: Perceived voice age bracket.
        tone: Delivery tone.
        pitch: Relative pitch multiplier (1.0 is neutral).
        speed: Relative speaking rate multiplier (1.0 is neutral).
        provider_voice_id: Optional provider-native voice override.
    """

    voice_id: str
    name: str
    gender: VoiceGender
    age: VoiceAge
    tone: VoiceTone
    pitch: float = 1.0
    speed: float = 1.0
    provider_voice_id: str | None = None

    def customized(self, *, voice_id: str, name: str, pitch: float, speed: float) -> VoiceProfile:
        """Return a copy with character-specific identity and clamped tuning."""

        return replace(
            self,
            voice_id=voice_id,
            name=name,
            pitch=max(0.5, min(2.0, pitch)),
            speed=max(0.5, min(1.5, speed)),
        )


VOICE_TEMPLATES: tuple[VoiceProfile, ...] = (
    VoiceProfile("narrator-1", "Classic Narrator", "neutral", "adult", "neutral", 1.0, 0.9),
    VoiceProfile("narrator-2", "Warm Narrator", "neutral", "adult", "warm", 0.95, 0.85),
    VoiceProfile("female-1", "Sarah Voice", "female", "young", "warm", 1.1, 1.0),
    VoiceProfile("female-2", "Emma Voice", "female", "adult", "neutral", 1.05, 0.95),
    VoiceProfile("female-3", "Grace Voice", "female", "elderly", "warm", 0.9, 0.8),
    VoiceProfile("female-4", "Lily Voice", "female", "child", "warm", 1.3, 1.1),
    VoiceProfile("male-1", "John Voice", "male", "adult", "neutral", 0.85, 0.9),
    VoiceProfile("male-2", "David Voice", "male", "young", "warm", 0.9, 1.0),
    VoiceProfile("male-3", "Robert Voice", "male", "elderly", "warm", 0.75, 0.8),
    VoiceProfile("male-4", "Tommy Voice", "male", "child", "warm", 1.2, 1.15),
    VoiceProfile("dramatic-1", "Dramatic Voice", "neutral", "adult", "dramatic", 0.95, 0.85),
)


def find_voice_template(voice_id: str) -> VoiceProfile:
    """Return the catalog template for a voice id or raise `KeyError`."""

    for template in VOICE_TEMPLATES:
        if template.voice_id == voice_id:
            return template
    known = ", ".join(template.voice_id for template in VOICE_TEMPLATES)
    raise KeyError(f"Unknown voice template `{voice_id}`; known: {known}.")
