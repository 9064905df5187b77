"""Instance-scoped service registry binding pipeline capabilities.

Responsibilities:
- Late-bind each stage capability name to one implementation instance.
- Fail loudly when a mandatory capability is resolved before registration.
- Report configuration health for pre-flight checks.

Key types:
- `ServiceRegistry`: capability-name to instance lookup table.
"""

from __future__ import annotations

from collections.abc import Iterable

from .errors import CapabilityNotRegisteredError

TEXT_ANALYZER = "TextAnalyzer"
CHARACTER_DETECTOR = "CharacterDetector"
VOICE_ASSIGNER = "VoiceAssigner"
AUDIO_GENERATOR = "AudioGenerator"
AUDIO_OPTIMIZER = "AudioOptimizer"
QUALITY_ANALYZER = "QualityAnalyzer"

MANDATORY_CAPABILITIES: tuple[str, ...] = (
    TEXT_ANALYZER,
    CHARACTER_DETECTOR,
    VOICE_ASSIGNER,
    AUDIO_GENERATOR,
    AUDIO_OPTIMIZER,
)
OPTIONAL_CAPABILITIES: tuple[str, ...] = (QUALITY_ANALYZER,)
KNOWN_CAPABILITIES = frozenset(MANDATORY_CAPABILITIES + OPTIONAL_CAPABILITIES)


class ServiceRegistry:
    """Bind capability names to implementation instances.

    Registration is expected to finish before any run starts, so the registry
    performs no locking of its own.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""

        self._bindings: dict[str, object] = {}

    def register(self, capability: str, instance: object) -> None:
        """Bind an instance to a capability, replacing any previous binding."""

        if capability not in KNOWN_CAPABILITIES:
            known = ", ".join(sorted(KNOWN_CAPABILITIES))
            raise ValueError(f"Unknown capability `{capability}`; expected one of: {known}.")
        self._bindings[capability] = instance

    def resolve(self, capability: str) -> object:
        """Return the bound instance or raise `CapabilityNotRegisteredError`."""

        try:
            return self._bindings[capability]
        except KeyError:
            raise CapabilityNotRegisteredError(capability) from None

    def resolve_optional(self, capability: str) -> object | None:
        """Return the bound instance of an optional capability, or `None`."""

        if capability not in OPTIONAL_CAPABILITIES:
            raise ValueError(
                f"`{capability}` is mandatory; use `resolve` so absence fails loudly."
            )
        return self._bindings.get(capability)

    def is_registered(self, capability: str) -> bool:
        """Return whether a capability currently has a binding."""

        return capability in self._bindings

    def is_fully_configured(self) -> bool:
        """Return whether every mandatory capability is bound."""

        return not self.missing_capabilities(MANDATORY_CAPABILITIES)

    def missing_capabilities(
        self, required: Iterable[str] = MANDATORY_CAPABILITIES
    ) -> list[str]:
        """List required capabilities that have no binding, in the given order."""

        return [capability for capability in required if capability not in self._bindings]
