"""Deterministic audio optimization for combined WAV payloads.

Responsibilities:
- Define explicit peak normalization defaults.
- Apply idempotent, duration-preserving WAV transformations without transcoding.

Key types:
- `WavAudioOptimizer`: `AudioOptimizer` implementation.
"""

from __future__ import annotations

from array import array
import asyncio
from dataclasses import dataclass, replace
import sys

from ..result import Failure, Result, Success
from .wav import PcmClip, decode_wav, encode_wav


@dataclass(frozen=True, slots=True)
class PostprocessPolicy:
    """Deterministic WAV optimization policy.

    Attributes:
        target_peak_ratio: Desired absolute peak ratio in the normalized output.
    """

    target_peak_ratio: float = 0.95


class WavAudioOptimizer:
    """Peak-normalize combined WAV payloads."""

    def __init__(self, policy: PostprocessPolicy | None = None) -> None:
        """Initialize optimizer with explicit deterministic defaults."""

        self._policy = policy if policy is not None else PostprocessPolicy()

    async def optimize_audio(self, payload: bytes) -> Result[bytes]:
        """Return a normalized copy of the payload."""

        try:
            optimized, gain = await asyncio.to_thread(self.normalize, payload)
        except ValueError as exc:
            return Failure(str(exc))
        return Success(
            optimized,
            metadata={
                "gain": round(gain, 4),
                "original_size": len(payload),
                "optimized_size": len(optimized),
            },
        )

    def normalize(self, payload: bytes) -> tuple[bytes, float]:
        """Normalize WAV peak amplitude to the policy target.

        Returns the (possibly unchanged) payload and the applied gain.
        """

        clip = decode_wav(payload)
        if clip.frame_count == 0:
            return payload, 1.0

        samples = self._decode_samples(clip)
        peak = max((abs(sample) for sample in samples), default=0)
        if peak <= 0:
            return payload, 1.0

        max_amplitude = (1 << (clip.sample_width * 8 - 1)) - 1
        target_peak = int(round(max_amplitude * self._policy.target_peak_ratio))
        if abs(peak - target_peak) <= 1:
            return payload, 1.0

        gain = target_peak / float(peak)
        min_value = -(max_amplitude + 1)
        scaled = [
            min(max_amplitude, max(min_value, int(round(sample * gain)))) for sample in samples
        ]
        return encode_wav(replace(clip, frames=self._encode_samples(scaled, clip))), gain

    @staticmethod
    def _decode_samples(clip: PcmClip) -> list[int]:
        """Decode PCM frame bytes into signed integer samples."""

        width = clip.sample_width
        if width == 2:
            samples = array("h")
            samples.frombytes(clip.frames[: len(clip.frames) - len(clip.frames) % 2])
            if sys.byteorder == "big":
                samples.byteswap()
            return samples.tolist()
        if width == 1:
            return [value - 128 for value in clip.frames]
        if width in (3, 4):
            return [
                int.from_bytes(clip.frames[offset : offset + width], "little", signed=True)
                for offset in range(0, len(clip.frames) - width + 1, width)
            ]
        raise ValueError(f"Unsupported WAV sample width: {width} bytes.")

    @staticmethod
    def _encode_samples(samples: list[int], clip: PcmClip) -> bytes:
        """Encode signed integer samples to PCM bytes."""

        width = clip.sample_width
        if width == 2:
            encoded = array("h", samples)
            if sys.byteorder == "big":
                encoded.byteswap()
            return encoded.tobytes()
        if width == 1:
            return bytes(sample + 128 for sample in samples)
        return b"".join(sample.to_bytes(width, "little", signed=True) for sample in samples)
