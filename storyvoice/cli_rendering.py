"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
run summaries, registry health rows, and the voice catalog.
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Sequence

import typer

from .errors import PipelineStageError
from .models.datatypes import AudioOutput
from .registry import MANDATORY_CAPABILITIES, OPTIONAL_CAPABILITIES, ServiceRegistry
from .tts.voices import VoiceProfile


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_run_summary(output: AudioOutput, output_path: Path) -> None:
    """Print the written file plus output statistics."""

    metadata = output.metadata
    typer.echo(f"Audio: {output_path}")
    typer.echo(f"Duration (s): {output.duration_seconds:.2f}")
    typer.echo(f"Segments: {metadata.total_segments}")
    typer.echo(f"Speakers: {metadata.character_count}")
    typer.echo(f"Optimized: {'yes' if metadata.optimized else 'no'}")
    typer.echo(f"Processing time (s): {metadata.processing_time_seconds:.2f}")

    report = metadata.quality_report
    if report is None:
        return
    typer.echo(f"Words: {report.word_count}")
    typer.echo(f"Dialogue ratio: {report.dialogue_ratio:.2f}")
    typer.echo(f"Reading ease: {report.reading_ease:.1f}")
    for phrase in report.telling_phrases:
        typer.echo(f"Telling phrase: {phrase}")


def echo_registry_health(registry: ServiceRegistry) -> None:
    """Print one binding row per capability."""

    for capability in MANDATORY_CAPABILITIES + OPTIONAL_CAPABILITIES:
        optional = capability in OPTIONAL_CAPABILITIES
        if registry.is_registered(capability):
            instance = (
                registry.resolve_optional(capability) if optional else registry.resolve(capability)
            )
            label = type(instance).__name__
        else:
            label = "not registered (optional)" if optional else "MISSING"
        typer.echo(f"{capability}: {label}")


def echo_voice_catalog(voices: Sequence[VoiceProfile]) -> None:
    """Print compact voice catalog rows."""

    for voice in voices:
        typer.echo(
            f"{voice.voice_id}\t{voice.name}\t{voice.gender}/{voice.age}/{voice.tone}"
            f"\tpitch={voice.pitch:.2f} speed={voice.speed:.2f}"
        )
