"""Unit tests for deterministic runtime executable resolution."""

from __future__ import annotations

from pathlib import Path

from pytest import MonkeyPatch

from storyvoice import runtime_tools


def test_resolve_executable_prefers_bundled_bin_over_path(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Bundled `bin` executable should take precedence over PATH discovery."""

    bundled_bin = tmp_path / "bin"
    bundled_bin.mkdir(parents=True, exist_ok=True)
    bundled_tool = bundled_bin / "ffmpeg"
    bundled_tool.write_text("stub", encoding="utf-8")
    monkeypatch.setattr(runtime_tools, "app_root", lambda: tmp_path)
    monkeypatch.setattr(runtime_tools.shutil, "which", lambda _: "/usr/bin/ffmpeg")

    assert runtime_tools.resolve_executable("ffmpeg") == str(bundled_tool)


def test_resolve_executable_finds_bundled_windows_binary(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
) -> None:
    """A shipped `.exe` variant is found for a bare command name."""

    (tmp_path / "bin").mkdir()
    bundled_tool = tmp_path / "bin" / "ffmpeg.exe"
    bundled_tool.write_text("stub", encoding="utf-8")
    monkeypatch.setattr(runtime_tools, "app_root", lambda: tmp_path)

    assert runtime_tools.resolve_executable("ffmpeg") == str(bundled_tool)


def test_resolve_executable_falls_back_to_path_then_bare_name(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
) -> None:
    """PATH lookup is used when nothing is bundled, else the bare name is returned."""

    monkeypatch.setattr(runtime_tools, "app_root", lambda: tmp_path)
    monkeypatch.setattr(runtime_tools.shutil, "which", lambda _: "/usr/bin/ffmpeg")
    assert runtime_tools.resolve_executable("ffmpeg") == "/usr/bin/ffmpeg"

    monkeypatch.setattr(runtime_tools.shutil, "which", lambda _: None)
    assert runtime_tools.resolve_executable("ffmpeg") == "ffmpeg"
