"""Top-level package for Storyvoice.

This package converts written stories into multi-voice audio through a
pipeline of late-bound stages. The main orchestration entry point is
`StoryOrchestrator`, wired to implementations through `ServiceRegistry`.
"""

from .models.datatypes import NarratorModeConfig, ProcessingOptions, ProcessingStatus
from .pipeline import StoryOrchestrator
from .registry import ServiceRegistry
from .result import Failure, Result, Success

__all__ = [
    "Failure",
    "NarratorModeConfig",
    "ProcessingOptions",
    "ProcessingStatus",
    "Result",
    "ServiceRegistry",
    "StoryOrchestrator",
    "Success",
    "__version__",
]

__version__ = "0.1.0"
