"""Storyvoice pipeline package.

This package contains the orchestrator, its stage telemetry mixin, and the
cooperative cancellation token shared across one run.
"""

from .cancellation import CancellationToken
from .orchestrator import StoryOrchestrator

__all__ = ["CancellationToken", "StoryOrchestrator"]
