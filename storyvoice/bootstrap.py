"""Registry wiring for the bundled stage implementations.

Responsibilities:
- Resolve provider identifiers to concrete speech backends.
- Bind every bundled stage implementation to a fresh `ServiceRegistry`.
- Keep orchestration independent from concrete class construction.
"""

from __future__ import annotations

from .audio.generation import WavAudioPipeline
from .audio.postprocess import WavAudioOptimizer
from .config import ProviderRuntimeConfig, StoryvoiceConfig
from .quality import WritingQualityAnalyzer
from .registry import (
    AUDIO_GENERATOR,
    AUDIO_OPTIMIZER,
    CHARACTER_DETECTOR,
    QUALITY_ANALYZER,
    TEXT_ANALYZER,
    VOICE_ASSIGNER,
    ServiceRegistry,
)
from .text.analysis import TextAnalysisEngine
from .text.characters import CharacterDetectionSystem
from .tts.assignment import VoiceAssignmentLogic
from .tts.backends import (
    ElevenLabsSpeechBackend,
    OfflineSpeechBackend,
    OpenAISpeechBackend,
    SpeechBackend,
)


def create_speech_backend(
    runtime: ProviderRuntimeConfig, timeout_seconds: float = 60.0
) -> SpeechBackend:
    """Create the speech backend for a resolved provider identifier."""

    if runtime.tts_provider == "offline":
        return OfflineSpeechBackend()
    if runtime.tts_provider == "openai":
        return OpenAISpeechBackend(
            model=runtime.tts_model,
            api_key=runtime.api_key,
            timeout_seconds=timeout_seconds,
        )
    if runtime.tts_provider == "elevenlabs":
        return ElevenLabsSpeechBackend(
            model=runtime.tts_model,
            api_key=runtime.api_key,
            timeout_seconds=timeout_seconds,
        )
    raise ValueError(f"Unsupported TTS provider `{runtime.tts_provider}`.")


def build_registry(
    config: StoryvoiceConfig,
    runtime: ProviderRuntimeConfig | None = None,
) -> ServiceRegistry:
    """Return a registry with every bundled implementation the config selects.

    The quality analyzer is bound only when `include_quality_analysis` is set.
    """

    resolved = runtime if runtime is not None else config.resolved_provider_runtime()
    backend = create_speech_backend(resolved, config.request_timeout_seconds)

    registry = ServiceRegistry()
    registry.register(TEXT_ANALYZER, TextAnalysisEngine())
    registry.register(CHARACTER_DETECTOR, CharacterDetectionSystem())
    registry.register(VOICE_ASSIGNER, VoiceAssignmentLogic(resolved.narrator_voice))
    registry.register(AUDIO_GENERATOR, WavAudioPipeline(backend))
    registry.register(AUDIO_OPTIMIZER, WavAudioOptimizer())
    if config.include_quality_analysis:
        registry.register(QUALITY_ANALYZER, WritingQualityAnalyzer())
    return registry
