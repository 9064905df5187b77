"""Command-line interface for Storyvoice.

Responsibilities:
- Expose user-facing commands for narration, health checks, and credentials.
- Convert CLI arguments into `StoryvoiceConfig` and drive the orchestrator.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated

import typer

from .audio.export import export_audio
from .bootstrap import build_registry
from .cli_rendering import (
    echo_registry_health,
    echo_run_summary,
    echo_voice_catalog,
    exit_with_command_error,
)
from .cli_runtime import resolve_provider_runtime_sources
from .config import (
    CHARACTER_NAME_STYLES,
    SUPPORTED_TTS_PROVIDERS,
    ConfigLoader,
    ProviderRuntimeConfig,
    RuntimeConfigSources,
    StoryvoiceConfig,
)
from .credentials import create_credential_store
from .errors import PipelineStageError
from .models.datatypes import OUTPUT_FORMATS, PROCESSING_MODES
from .parsing import normalize_choice
from .pipeline import StoryOrchestrator
from .telemetry.logger import RunLogger, configure_logging
from .tts.voices import VOICE_TEMPLATES

app = typer.Typer(
    name="storyvoice",
    no_args_is_help=True,
    help="Storyvoice CLI: turn a written story into multi-voice audio.",
)


class StageProgressIndicator:
    """Render deterministic per-stage progress lines for a narration run."""

    _SPINNER_FRAMES = "|/-\\"

    def __init__(self, command_name: str) -> None:
        """Initialize progress indicator metadata for a command invocation."""

        self._command_name = command_name

    def on_stage_start(self, stage_name: str, stage_index: int, stage_total: int) -> None:
        """Print one progress line for a stage start transition."""

        spinner = self._SPINNER_FRAMES[(stage_index - 1) % len(self._SPINNER_FRAMES)]
        typer.echo(
            f"[progress] command={self._command_name} "
            f"{spinner} {stage_index}/{stage_total} stage={stage_name}"
        )


def _load_base_config(config_path: Path | None) -> StoryvoiceConfig:
    """Load YAML config when given, else environment defaults, as stage errors."""

    if config_path is None:
        try:
            return ConfigLoader.from_env(os.environ)
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=f"Invalid environment configuration: {exc}",
                hint="Fix or unset the offending `STORYVOICE_*` variable and rerun.",
            ) from exc

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to read config file `{config_path}`: {exc}",
            hint="Verify file permissions and rerun.",
        ) from exc


def _apply_cli_overrides(
    config: StoryvoiceConfig,
    *,
    mode: str | None,
    output_format: str | None,
    quality: bool | None,
    character_names: bool | None,
    character_name_style: str | None,
) -> StoryvoiceConfig:
    """Return config with explicit CLI values applied and validated."""

    overrides: dict[str, object] = {}
    try:
        if mode is not None:
            overrides["mode"] = normalize_choice(mode, "mode", PROCESSING_MODES)
        if output_format is not None:
            overrides["output_format"] = normalize_choice(
                output_format, "format", OUTPUT_FORMATS
            )
        if character_name_style is not None:
            overrides["character_name_style"] = normalize_choice(
                character_name_style, "character_name_style", CHARACTER_NAME_STYLES
            )
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Run `storyvoice narrate --help` to list accepted values.",
        ) from exc
    if quality is not None:
        overrides["include_quality_analysis"] = quality
    if character_names is not None:
        overrides["include_character_names"] = character_names
    return replace(config, **overrides)


def _resolve_runtime_config(
    base_config: StoryvoiceConfig,
    sources: RuntimeConfigSources,
) -> tuple[StoryvoiceConfig, ProviderRuntimeConfig]:
    """Attach runtime sources and resolve provider values as config-stage errors."""

    config = replace(base_config, runtime_sources=sources)
    try:
        config.validate()
        runtime = config.resolved_provider_runtime()
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Fix provider/model/voice values and rerun.",
        ) from exc
    return config, runtime


def _read_story(input_path: Path) -> str:
    """Read story text from a UTF-8 file."""

    try:
        return input_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Story file not found: `{input_path}`.",
            hint="Pass the path of an existing UTF-8 text file.",
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise PipelineStageError(
            stage="input",
            detail=f"Failed to read story file `{input_path}`: {exc}",
            hint="Verify the file is readable UTF-8 text.",
        ) from exc


@app.command("narrate")
def narrate_command(
    input_path: Annotated[Path, typer.Argument(help="Story text file (UTF-8).")],
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Output audio path (default: input name with format suffix)."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with command defaults."),
    ] = None,
    mode: Annotated[
        str | None, typer.Option("--mode", help="`multi-voice` or `narrator`.")
    ] = None,
    output_format: Annotated[
        str | None, typer.Option("--format", help="Output format: `wav` or `mp3`.")
    ] = None,
    quality: Annotated[
        bool | None,
        typer.Option("--quality/--no-quality", help="Run the writing-quality analysis stage."),
    ] = None,
    character_names: Annotated[
        bool | None,
        typer.Option(
            "--character-names/--no-character-names",
            help="Narrator mode: prefix dialogue with the speaker's name.",
        ),
    ] = None,
    character_name_style: Annotated[
        str | None,
        typer.Option("--character-name-style", help="`full`, `short`, or `none`."),
    ] = None,
    provider_tts: Annotated[
        str | None,
        typer.Option(
            "--provider-tts", help=f"TTS provider: {', '.join(SUPPORTED_TTS_PROVIDERS)}."
        ),
    ] = None,
    model_tts: Annotated[
        str | None, typer.Option("--model-tts", help="TTS model id override.")
    ] = None,
    narrator_voice: Annotated[
        str | None,
        typer.Option("--narrator-voice", help="Narrator voice id (see `storyvoice voices`)."),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option(
            "--api-key",
            help="Provider API key override. Prefer `--prompt-api-key` to avoid shell history.",
        ),
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option("--prompt-api-key", help="Prompt for API key with hidden input."),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option(
            "--store-api-key/--no-store-api-key",
            help="Persist CLI-entered API key to secure credential storage.",
        ),
    ] = True,
    log_level: Annotated[
        str, typer.Option("--log-level", help="Phase log level written to stderr.")
    ] = "INFO",
) -> None:
    """Turn a story text file into one audio file."""

    configure_logging(level=log_level.upper())
    run_logger: RunLogger | None = None
    try:
        base_config = _apply_cli_overrides(
            _load_base_config(config_file),
            mode=mode,
            output_format=output_format,
            quality=quality,
            character_names=character_names,
            character_name_style=character_name_style,
        )
        sources = resolve_provider_runtime_sources(
            base_config,
            provider_tts=provider_tts,
            model_tts=model_tts,
            narrator_voice=narrator_voice,
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            env=os.environ,
            credential_store_factory=create_credential_store,
        )
        config, runtime = _resolve_runtime_config(base_config, sources)
        config = replace(config, narrator_voice=runtime.narrator_voice)
        text = _read_story(input_path)

        run_logger = RunLogger()
        run_logger.log_run_start(**config.run_log_context(runtime))
        progress = StageProgressIndicator(command_name="narrate")
        orchestrator = StoryOrchestrator(
            build_registry(config, runtime),
            run_logger=run_logger,
            stage_progress_callback=progress.on_stage_start,
            optimize_segment_threshold=config.optimize_segment_threshold,
        )
        result = asyncio.run(orchestrator.process_story(text, config.processing_options()))
        if not result.succeeded:
            hint = result.metadata.get("hint")
            raise PipelineStageError(
                stage=str(result.metadata.get("stage", "run")),
                detail=result.error_message,
                hint=hint if isinstance(hint, str) else None,
            )

        output = result.value
        output_path = out or input_path.with_suffix(f".{config.output_format}")
        export_audio(output.audio, output_path, config.output_format)
    except Exception as exc:
        exit_with_command_error("narrate", exc)
    finally:
        if run_logger is not None:
            run_logger.close()

    echo_run_summary(output, output_path)


@app.command("check")
def check_command(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with command defaults."),
    ] = None,
    provider_tts: Annotated[
        str | None, typer.Option("--provider-tts", help="TTS provider id.")
    ] = None,
    quality: Annotated[
        bool | None,
        typer.Option("--quality/--no-quality", help="Include the quality analyzer binding."),
    ] = None,
) -> None:
    """Report which pipeline capabilities the current configuration binds."""

    try:
        base_config = _apply_cli_overrides(
            _load_base_config(config_file),
            mode=None,
            output_format=None,
            quality=quality,
            character_names=None,
            character_name_style=None,
        )
        sources = RuntimeConfigSources(
            cli={"provider_tts": provider_tts} if provider_tts else {},
            env=os.environ,
        )
        config, runtime = _resolve_runtime_config(base_config, sources)
        registry = build_registry(config, runtime)
    except Exception as exc:
        exit_with_command_error("check", exc)

    typer.echo(f"Provider: {runtime.tts_provider} (model {runtime.tts_model})")
    echo_registry_health(registry)
    if not registry.is_fully_configured():
        missing = ", ".join(registry.missing_capabilities())
        exit_with_command_error(
            "check",
            PipelineStageError(
                stage="config",
                detail=f"Missing capabilities: {missing}",
                hint="Register an implementation for every mandatory capability.",
            ),
        )
    typer.echo("Registry: fully configured")


@app.command("voices")
def voices_command() -> None:
    """List the bundled voice catalog."""

    echo_voice_catalog(VOICE_TEMPLATES)


@app.command("credentials-clear")
def credentials_clear_command(
    provider: Annotated[
        str, typer.Option("--provider", help="Provider whose stored API key to clear.")
    ] = "openai",
) -> None:
    """Clear a stored provider API key from secure credential storage."""

    try:
        provider_id = normalize_choice(provider, "provider", SUPPORTED_TTS_PROVIDERS)
        removed = create_credential_store().clear_api_key(provider_id)
    except Exception as exc:
        exit_with_command_error(
            "credentials-clear",
            PipelineStageError(
                stage="credentials",
                detail=str(exc),
                hint="Install and configure a keyring backend and retry.",
            ),
        )

    if removed:
        typer.echo(f"Stored {provider_id} API key cleared from secure credential storage.")
    else:
        typer.echo(f"No stored {provider_id} API key found in secure credential storage.")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
