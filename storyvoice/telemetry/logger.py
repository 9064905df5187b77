"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level runtime logs through `loguru`.
- Install the CLI log sink without touching handlers owned by library callers.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger

_LINE_FORMAT = "{message}"


def configure_logging(sink: TextIO | None = None, level: str = "INFO") -> None:
    """Replace loguru handlers with one plain-message sink for CLI runs."""

    _loguru_logger.remove()
    _loguru_logger.add(sink or sys.stderr, format=_LINE_FORMAT, level=level, colorize=False)


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    return " " + " ".join(
        f"{key}={_sanitize_context_value(context[key])}" for key in sorted(context)
    )


class RunLogger:
    """Emit deterministic phase logs for pipeline activity.

    When `sink` is given, a dedicated handler receives only this logger's
    lines; otherwise lines go to whatever handlers loguru already has.
    """

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Bind a per-instance logger and optionally attach a private sink."""

        token = id(self)
        self._logger = _loguru_logger.bind(run_logger=token)
        self._handler_id: int | None = None
        if sink is not None:
            self._handler_id = _loguru_logger.add(
                sink,
                format=_LINE_FORMAT,
                level=level,
                colorize=False,
                filter=lambda record: record["extra"].get("run_logger") == token,
            )

    def close(self) -> None:
        """Detach the private sink, if one was attached."""

        if self._handler_id is not None:
            _loguru_logger.remove(self._handler_id)
            self._handler_id = None

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def log_stage_start(self, stage: str, **context: object) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage, **context)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_stage_skipped(self, stage: str, reason: str) -> None:
        """Emit an event for a stage that was intentionally not run."""

        self._emit("INFO", "skipped", stage, reason=reason)

    def log_warning(self, stage: str, reason: str, **context: object) -> None:
        """Emit a non-fatal warning event."""

        self._emit("WARNING", "warning", stage, reason=reason, **context)

    def log_run_start(self, **context: object) -> None:
        """Emit the run-start event with non-secret runtime context."""

        self._emit("INFO", "start", "run", **context)

    def log_run_summary(self, outcome: str, **context: object) -> None:
        """Emit the terminal summary event of a run."""

        self._emit("INFO", "summary", "run", outcome=outcome, **context)
