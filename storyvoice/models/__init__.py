"""Shared typed data models for Storyvoice.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    AudioOutput,
    AudioOutputMetadata,
    AudioSegment,
    Character,
    NarratorModeConfig,
    ProcessingOptions,
    ProcessingStatus,
    QualityReport,
    TextSegment,
    VoiceAssignment,
)

__all__ = [
    "AudioOutput",
    "AudioOutputMetadata",
    "AudioSegment",
    "Character",
    "NarratorModeConfig",
    "ProcessingOptions",
    "ProcessingStatus",
    "QualityReport",
    "TextSegment",
    "VoiceAssignment",
]
