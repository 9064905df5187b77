"""Voice catalog, voice assignment, and speech provider backends.

Only the voice models are re-exported here; backends and clients are imported
from their modules so that model imports stay free of HTTP dependencies.
"""

from .voices import VOICE_TEMPLATES, VoiceProfile, find_voice_template

__all__ = ["VOICE_TEMPLATES", "VoiceProfile", "find_voice_template"]
