"""WAV handling, merging, optimization, and export components."""

from .merger import AudioMerger
from .postprocess import PostprocessPolicy, WavAudioOptimizer

__all__ = ["AudioMerger", "PostprocessPolicy", "WavAudioOptimizer"]
