"""Text segmentation and character detection components."""

from .analysis import TextAnalysisEngine
from .characters import CharacterDetectionSystem

__all__ = ["CharacterDetectionSystem", "TextAnalysisEngine"]
