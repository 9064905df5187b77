"""External executable lookup.

Responsibilities:
- Resolve tool paths, preferring a `bin/` directory shipped beside the app.
- Support frozen app layouts (for example PyInstaller) and local development runs.
"""

from __future__ import annotations

from pathlib import Path
import shutil
import sys


def resolve_executable(command_name: str) -> str:
    """Return the path of an executable, or the bare name when it cannot be found.

    Shipped `bin/<tool>` wins over `PATH`. Returning the bare name lets
    `subprocess` raise its native `FileNotFoundError` for missing tools.
    """

    name = command_name.strip()
    if not name:
        return command_name

    variants = (name,) if name.lower().endswith(".exe") else (name, f"{name}.exe")
    shipped_dir = app_root() / "bin"
    for variant in variants:
        candidate = shipped_dir / variant
        if candidate.is_file():
            return str(candidate)

    return shutil.which(name) or name


def app_root() -> Path:
    """Return the application root for frozen and source runs."""

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]
