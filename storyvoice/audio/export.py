"""Output file export for combined story audio.

Responsibilities:
- Write WAV output unchanged.
- Transcode WAV output to MP3 through the system `ffmpeg` binary.
"""

from __future__ import annotations

from pathlib import Path
import subprocess

from ..errors import PipelineStageError
from ..parsing import normalize_optional_string
from ..runtime_tools import resolve_executable

MP3_BITRATE = "128k"


def export_audio(payload: bytes, output_path: Path, output_format: str) -> Path:
    """Write combined WAV audio to `output_path` in the requested format."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_format == "mp3":
        export_mp3(payload, output_path)
    else:
        output_path.write_bytes(payload)
    return output_path


def export_mp3(wav_payload: bytes, output_path: Path) -> None:
    """Encode a WAV payload to MP3 by piping it through ffmpeg."""

    command = [
        resolve_executable("ffmpeg"),
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-f",
        "wav",
        "-i",
        "pipe:0",
        "-vn",
        "-map_metadata",
        "-1",
        "-c:a",
        "libmp3lame",
        "-b:a",
        MP3_BITRATE,
        str(output_path),
    ]
    try:
        subprocess.run(command, input=wav_payload, check=True, capture_output=True)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="export",
            detail="Export tool `ffmpeg` is not available on PATH.",
            hint="Install ffmpeg and rerun, or use `--format wav`.",
        ) from exc
    except subprocess.CalledProcessError as exc:
        raw_stderr = exc.stderr.decode("utf-8", "replace") if exc.stderr else None
        stderr = normalize_optional_string(raw_stderr) or "no stderr output"
        raise PipelineStageError(
            stage="export",
            detail=f"ffmpeg export failed for `{output_path.name}`: {stderr}",
            hint="Verify local ffmpeg supports the `libmp3lame` encoder.",
        ) from exc
