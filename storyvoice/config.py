"""Configuration model and loaders for Storyvoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider/model/voice settings.
- Provide loader entry points for YAML- and environment-based configuration.

Key types:
- `StoryvoiceConfig`: normalized settings for one narration run.
- `ProviderRuntimeConfig`: resolved speech provider runtime values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `StoryvoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from .models.datatypes import (
    OUTPUT_FORMATS,
    PROCESSING_MODES,
    NarratorModeConfig,
    ProcessingOptions,
)
from .parsing import (
    normalize_choice,
    normalize_optional_string,
    parse_positive_float,
    parse_positive_int,
    parse_required_boolean,
)
from .tts.voices import DEFAULT_NARRATOR_VOICE_ID, find_voice_template

SUPPORTED_TTS_PROVIDERS = ("offline", "openai", "elevenlabs")
CHARACTER_NAME_STYLES = frozenset({"full", "short", "none"})

_DEFAULT_TTS_MODELS = {
    "offline": "tone",
    "openai": "gpt-4o-mini-tts",
    "elevenlabs": "eleven_multilingual_v2",
}
_PROVIDER_API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "elevenlabs": "ELEVENLABS_API_KEY",
}


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved speech provider values for one run.

    Attributes:
        tts_provider: Speech provider identifier.
        tts_model: Provider model identifier.
        narrator_voice: Voice template id used for the narrator.
        api_key: Optional provider API key (never logged).
    """

    tts_provider: str
    tts_model: str
    narrator_voice: str
    api_key: str | None = None

    def as_log_context(self) -> dict[str, str]:
        """Return non-secret runtime values safe to include in log lines."""

        return {
            "provider": self.tts_provider,
            "model": self.tts_model,
            "narrator_voice": self.narrator_voice,
            "api_key": "set" if self.api_key else "unset",
        }


@dataclass(slots=True)
class StoryvoiceConfig:
    """Runtime configuration for one narration run.

    Attributes:
        provider_tts: Speech provider (`offline`, `openai`, `elevenlabs`).
        model_tts: Provider model; `None` selects the provider default.
        narrator_voice: Voice template id for narration.
        mode: `multi-voice` or `narrator`.
        output_format: `wav` or `mp3`.
        include_quality_analysis: Whether to run the writing-quality stage.
        include_character_names: Narrator mode speaker prefixes.
        character_name_style: `full`, `short`, or `none`.
        optimize_segment_threshold: Segment count above which output is optimized.
        request_timeout_seconds: HTTP timeout for provider calls.
        api_key: Optional API key for provider calls.
        runtime_sources: Runtime source overrides injected by the CLI.
        extra: Free-form run labels written to the run-start log line.
    """

    provider_tts: str = "offline"
    model_tts: str | None = None
    narrator_voice: str = DEFAULT_NARRATOR_VOICE_ID
    mode: str = "multi-voice"
    output_format: str = "wav"
    include_quality_analysis: bool = False
    include_character_names: bool = False
    character_name_style: str = "full"
    optimize_segment_threshold: int = 5
    request_timeout_seconds: float = 60.0
    api_key: str | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)
    extra: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate configuration values before a run."""

        normalize_choice(self.provider_tts, "provider_tts", SUPPORTED_TTS_PROVIDERS)
        normalize_choice(self.mode, "mode", PROCESSING_MODES)
        normalize_choice(self.output_format, "output_format", OUTPUT_FORMATS)
        normalize_choice(self.character_name_style, "character_name_style", CHARACTER_NAME_STYLES)
        _require_voice_template(self.narrator_voice)
        if self.optimize_segment_threshold <= 0:
            raise ValueError("`optimize_segment_threshold` must be a positive integer.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("`request_timeout_seconds` must be a positive number.")

    def processing_options(self) -> ProcessingOptions:
        """Build per-run orchestrator options from this configuration."""

        return ProcessingOptions(
            output_format=self.output_format,  # type: ignore[arg-type]
            include_quality_analysis=self.include_quality_analysis,
            mode=self.mode,  # type: ignore[arg-type]
            narrator=NarratorModeConfig(
                voice=find_voice_template(self.narrator_voice),
                include_character_names=self.include_character_names,
                character_name_style=self.character_name_style,  # type: ignore[arg-type]
            ),
        )

    def run_log_context(self, runtime: ProviderRuntimeConfig) -> dict[str, str]:
        """Return the run-start log context: runtime values plus `extra` labels."""

        context = runtime.as_log_context()
        context["mode"] = self.mode
        context["output_format"] = self.output_format
        for key, value in self.extra.items():
            context[f"label_{key}"] = value
        return context

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve provider settings with deterministic source precedence.

        Precedence for each key is `cli` > `secure` > `env` > config field.
        A provider-native key variable (`OPENAI_API_KEY`, `ELEVENLABS_API_KEY`)
        is consulted after `STORYVOICE_API_KEY`.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources

        provider = normalize_choice(
            self._resolve(
                "provider_tts", "STORYVOICE_PROVIDER_TTS", self.provider_tts, resolved_sources
            ),
            "provider_tts",
            SUPPORTED_TTS_PROVIDERS,
        )
        model = self._resolve(
            "model_tts",
            "STORYVOICE_MODEL_TTS",
            self.model_tts or _DEFAULT_TTS_MODELS[provider],
            resolved_sources,
        )
        narrator_voice = self._resolve(
            "narrator_voice", "STORYVOICE_NARRATOR_VOICE", self.narrator_voice, resolved_sources
        )
        if narrator_voice is None:
            raise ValueError("`narrator_voice` could not be resolved from any source.")
        _require_voice_template(narrator_voice)

        api_key = self._resolve("api_key", "STORYVOICE_API_KEY", None, resolved_sources)
        if api_key is None and provider in _PROVIDER_API_KEY_ENV:
            api_key = _normalized_lookup(resolved_sources.env, _PROVIDER_API_KEY_ENV[provider])
        if api_key is None:
            api_key = normalize_optional_string(self.api_key)

        if model is None:
            raise ValueError("`model_tts` could not be resolved from any source.")
        return ProviderRuntimeConfig(
            tts_provider=provider,
            tts_model=model,
            narrator_voice=narrator_voice,
            api_key=api_key,
        )

    @staticmethod
    def _resolve(
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve one runtime value from sources in precedence order."""

        for value in (
            _normalized_lookup(sources.cli, key),
            _normalized_lookup(sources.secure, key),
            _normalized_lookup(sources.env, env_key),
        ):
            if value is not None:
                return value
        return normalize_optional_string(default_value)


def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
    """Return a stripped mapping value for a key or `None` when missing/blank."""

    if key not in mapping:
        return None
    return normalize_optional_string(mapping.get(key))


def _require_voice_template(voice_id: str) -> None:
    """Raise `ValueError` when a voice id is not in the bundled catalog."""

    try:
        find_voice_template(voice_id)
    except KeyError as exc:
        raise ValueError(str(exc.args[0])) from exc


def _as_choice(choices: frozenset[str] | tuple[str, ...]) -> Callable[[object, str], str]:
    """Return a field parser validating against a fixed choice set."""

    return lambda value, name: normalize_choice(value, name, choices)


def _as_string(value: object, name: str) -> str | None:
    """Field parser returning a stripped string or `None` when blank."""

    return normalize_optional_string(value)


_FIELD_PARSERS: dict[str, Callable[[object, str], Any]] = {
    "provider_tts": _as_choice(SUPPORTED_TTS_PROVIDERS),
    "model_tts": _as_string,
    "narrator_voice": _as_string,
    "mode": _as_choice(PROCESSING_MODES),
    "output_format": _as_choice(OUTPUT_FORMATS),
    "include_quality_analysis": parse_required_boolean,
    "include_character_names": parse_required_boolean,
    "character_name_style": _as_choice(CHARACTER_NAME_STYLES),
    "optimize_segment_threshold": parse_positive_int,
    "request_timeout_seconds": parse_positive_float,
    "api_key": _as_string,
}


class ConfigLoader:
    """Factory methods for creating validated `StoryvoiceConfig` objects."""

    _SUPPORTED_YAML_KEYS = frozenset(_FIELD_PARSERS) | {"extra"}
    _ENV_KEYS = {f"STORYVOICE_{name.upper()}": name for name in _FIELD_PARSERS}
    _RUNTIME_ENV_KEYS = frozenset(
        {
            "STORYVOICE_PROVIDER_TTS",
            "STORYVOICE_MODEL_TTS",
            "STORYVOICE_NARRATOR_VOICE",
            "STORYVOICE_API_KEY",
            *_PROVIDER_API_KEY_ENV.values(),
        }
    )

    @staticmethod
    def from_yaml(path: Path) -> StoryvoiceConfig:
        """Create a validated config from a YAML file."""

        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")

        source_label = f"YAML `{path}`"
        unknown = sorted(
            str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS)
        )
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        values = {
            key: ConfigLoader._parse_field(key, payload[key], source_label)
            for key in _FIELD_PARSERS
            if key in payload and payload[key] is not None
        }
        config = StoryvoiceConfig(
            **{key: value for key, value in values.items() if value is not None},
            extra=ConfigLoader._optional_string_map(payload, "extra", source_label),
        )
        config.validate()
        return config

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> StoryvoiceConfig:
        """Create a validated config from `STORYVOICE_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        values: dict[str, Any] = {}
        for env_key, field_name in ConfigLoader._ENV_KEYS.items():
            raw_value = normalize_optional_string(env_map.get(env_key))
            if raw_value is None:
                continue
            values[field_name] = ConfigLoader._parse_field(
                field_name, raw_value, f"Environment variable `{env_key}`"
            )

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }
        config = StoryvoiceConfig(
            **{key: value for key, value in values.items() if value is not None},
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )
        config.validate()
        return config

    @staticmethod
    def _parse_field(key: str, raw_value: object, source_label: str) -> Any:
        """Parse one field value, prefixing errors with the value source."""

        try:
            return _FIELD_PARSERS[key](raw_value, key)
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc

    @staticmethod
    def _optional_string_map(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> dict[str, str]:
        """Read an optional mapping with non-empty string keys and values."""

        raw = payload.get(key)
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a mapping/object.")

        normalized: dict[str, str] = {}
        for raw_key, raw_value in raw.items():
            key_value = normalize_optional_string(raw_key)
            value_value = normalize_optional_string(raw_value)
            if key_value is None:
                raise ValueError(f"{source_label} field `{key}` contains a blank key.")
            if value_value is None:
                raise ValueError(
                    f"{source_label} field `{key}` contains blank value for `{key_value}`."
                )
            normalized[key_value] = value_value
        return normalized
