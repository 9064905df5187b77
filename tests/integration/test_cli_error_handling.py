"""CLI error-handling tests for concise stage-aware diagnostics."""

from __future__ import annotations

from pathlib import Path

from pytest import MonkeyPatch
from typer.testing import CliRunner

from storyvoice.cli import app
from storyvoice.result import Failure


def test_narrate_reports_missing_story_file(tmp_path: Path) -> None:
    """A missing input file fails at the input stage with a hint."""

    result = CliRunner().invoke(app, ["narrate", str(tmp_path / "missing.txt")])

    assert result.exit_code == 1
    assert "narrate failed at stage `input`" in result.output
    assert "Hint: Pass the path of an existing UTF-8 text file." in result.output


def test_narrate_rejects_unknown_mode(story_path: Path) -> None:
    """Invalid option values fail at the config stage."""

    result = CliRunner().invoke(app, ["narrate", str(story_path), "--mode", "chorus"])

    assert result.exit_code == 1
    assert "narrate failed at stage `config`: `mode` must be one of" in result.output


def test_narrate_reports_missing_config_file(story_path: Path, tmp_path: Path) -> None:
    """A `--config` path that does not exist is a config-stage error."""

    missing = tmp_path / "missing.yml"

    result = CliRunner().invoke(app, ["narrate", str(story_path), "--config", str(missing)])

    assert result.exit_code == 1
    assert f"Config file not found: `{missing}`." in result.output


def test_narrate_reports_unsupported_config_keys(story_path: Path, tmp_path: Path) -> None:
    """Unknown YAML keys are rejected before any stage runs."""

    config_path = tmp_path / "storyvoice.yml"
    config_path.write_text("provider_tts: offline\nvoice_speed: 2\n", encoding="utf-8")

    result = CliRunner().invoke(app, ["narrate", str(story_path), "--config", str(config_path)])

    assert result.exit_code == 1
    assert "unsupported key(s): voice_speed." in result.output
    assert "Hint: Fix config schema/values and rerun." in result.output


def test_narrate_reports_invalid_environment(story_path: Path, monkeypatch: MonkeyPatch) -> None:
    """Invalid `STORYVOICE_*` values surface as configuration errors."""

    monkeypatch.setenv("STORYVOICE_MODE", "chorus")

    result = CliRunner().invoke(app, ["narrate", str(story_path)])

    assert result.exit_code == 1
    assert "Invalid environment configuration" in result.output
    assert "STORYVOICE_MODE" in result.output


def test_narrate_reports_missing_provider_key_with_hint(story_path: Path, tmp_path: Path) -> None:
    """A hosted provider without a key fails at generation with a key hint."""

    result = CliRunner().invoke(
        app,
        ["narrate", str(story_path), "--out", str(tmp_path / "o.wav"), "--provider-tts", "openai"],
    )

    assert result.exit_code == 1
    assert (
        "narrate failed at stage `generating`: Audio generation failed for segment 1/4: "
        "Missing OpenAI API key."
    ) in result.output
    assert "Hint: Set a valid API key" in result.output
    assert not (tmp_path / "o.wav").exists()


def test_narrate_reports_failed_run_envelope(story_path: Path, monkeypatch: MonkeyPatch) -> None:
    """A failed run envelope is rendered with its stage and hint."""

    async def _failing_process_story(self: object, text: str, options: object) -> Failure:
        return Failure("Audio combination failed: boom", metadata={"stage": "combining", "hint": "Retry."})

    monkeypatch.setattr("storyvoice.cli.StoryOrchestrator.process_story", _failing_process_story)

    result = CliRunner().invoke(app, ["narrate", str(story_path)])

    assert result.exit_code == 1
    assert "narrate failed at stage `combining`: Audio combination failed: boom" in result.output
    assert "Hint: Retry." in result.output
