"""Shared pytest fixtures for the full Storyvoice test suite."""

from __future__ import annotations

from collections.abc import Iterator
import os
import sys

from loguru import logger
import pytest


@pytest.fixture(autouse=True)
def _restore_loguru_handlers() -> Iterator[None]:
    """Reinstall the default loguru sink after tests that reconfigure logging."""

    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture(autouse=True)
def _clear_storyvoice_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host `STORYVOICE_*` and provider key variables out of tests."""

    for key in list(os.environ):
        if key.startswith("STORYVOICE_") or key in {"OPENAI_API_KEY", "ELEVENLABS_API_KEY"}:
            monkeypatch.delenv(key, raising=False)
