"""Cooperative cancellation token threaded through one run."""

from __future__ import annotations

import threading

from ..errors import RunCancelledError


class CancellationToken:
    """Thread-safe cancel flag checked at pipeline checkpoints."""

    def __init__(self) -> None:
        """Initialize an unset token."""

        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation was requested."""

        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; idempotent."""

        self._event.set()

    def raise_if_cancelled(self, stage: str) -> None:
        """Raise `RunCancelledError` for the given stage when cancelled."""

        if self._event.is_set():
            raise RunCancelledError(stage)
