"""Integration tests for the `narrate` command end to end."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from typer.testing import CliRunner

from storyvoice.audio.wav import decode_wav
from storyvoice.cli import app


def test_narrate_offline_writes_wav_and_prints_summary(story_path: Path, tmp_path: Path) -> None:
    """Offline narration writes playable audio and reports run statistics."""

    output_path = tmp_path / "out" / "story.wav"
    runner = CliRunner()

    result = runner.invoke(app, ["narrate", str(story_path), "--out", str(output_path)])

    assert result.exit_code == 0, result.output
    clip = decode_wav(output_path.read_bytes())
    assert clip.duration_seconds > 0
    assert f"Audio: {output_path}" in result.output
    assert "Segments: 4" in result.output
    assert "Speakers: 3" in result.output
    assert "Optimized: no" in result.output
    assert "[progress] command=narrate | 1/5 stage=analyzing" in result.output
    assert "[progress] command=narrate / 2/5 stage=detecting" in result.output
    assert "stage=run event=summary" in result.output
    assert "mode=multi-voice outcome=complete segments=4" in result.output


def test_narrate_logs_run_start_with_config_labels(story_path: Path, tmp_path: Path) -> None:
    """The run-start line carries provider context and `extra` labels, never the key."""

    config_path = tmp_path / "storyvoice.yml"
    config_path.write_text("extra:\n  profile: nightly\n", encoding="utf-8")

    result = CliRunner().invoke(
        app,
        [
            "narrate",
            str(story_path),
            "--config",
            str(config_path),
            "--out",
            str(tmp_path / "a.wav"),
        ],
    )

    assert result.exit_code == 0, result.output
    start_lines = [line for line in result.output.splitlines() if "stage=run event=start" in line]
    assert start_lines == [
        "[phase] level=INFO stage=run event=start api_key=unset label_profile=nightly "
        "mode=multi-voice model=tone narrator_voice=narrator-1 output_format=wav provider=offline"
    ]


def test_narrate_defaults_output_path_next_to_input(story_path: Path) -> None:
    """Without `--out` the audio lands beside the story with the format suffix."""

    result = CliRunner().invoke(app, ["narrate", str(story_path)])

    assert result.exit_code == 0, result.output
    assert story_path.with_suffix(".wav").is_file()


def test_narrate_narrator_mode_with_character_names(story_path: Path, tmp_path: Path) -> None:
    """Narrator mode skips detection and assignment but still narrates every segment."""

    output_path = tmp_path / "narrated.wav"

    result = CliRunner().invoke(
        app,
        [
            "narrate",
            str(story_path),
            "--out",
            str(output_path),
            "--mode",
            "narrator",
            "--character-names",
            "--character-name-style",
            "short",
            "--narrator-voice",
            "narrator-2",
        ],
    )

    assert result.exit_code == 0, result.output
    assert output_path.is_file()
    assert "Segments: 4" in result.output
    assert "stage=detecting event=skipped reason=narrator_mode" in result.output
    assert "mode=narrator" in result.output


def test_narrate_with_quality_prints_report(story_path: Path, tmp_path: Path) -> None:
    """`--quality` attaches the writing-quality report to the summary."""

    result = CliRunner().invoke(
        app,
        ["narrate", str(story_path), "--out", str(tmp_path / "q.wav"), "--quality"],
    )

    assert result.exit_code == 0, result.output
    assert "Words: 6" in result.output
    assert "Dialogue ratio: 0.33" in result.output


def test_narrate_with_openai_provider_uses_speech_endpoint(
    story_path: Path,
    tmp_path: Path,
    _mock_speech_http: list[dict[str, Any]],
) -> None:
    """Hosted narration sends one speech request per segment with the mapped voice."""

    result = CliRunner().invoke(
        app,
        [
            "narrate",
            str(story_path),
            "--out",
            str(tmp_path / "openai.wav"),
            "--provider-tts",
            "openai",
            "--api-key",
            "sk-integration-key",
            "--no-store-api-key",
        ],
    )

    assert result.exit_code == 0, result.output
    assert len(_mock_speech_http) == 4
    assert {call["url"] for call in _mock_speech_http} == {
        "https://api.openai.com/v1/audio/speech"
    }
    assert all(call["json"]["response_format"] == "wav" for call in _mock_speech_http)
    assert _mock_speech_http[1]["json"]["input"] == "Hi."
    assert "sk-integration-key" not in result.output
