"""WAV payload merging.

Responsibilities:
- Concatenate ordered WAV payloads into one WAV payload.
- Reject inputs whose channel count, sample width, or rate differ.
"""

from __future__ import annotations

from collections.abc import Sequence

from .wav import DEFAULT_SAMPLE_RATE, PcmClip, decode_wav, encode_wav


class AudioMerger:
    """Merge WAV payloads in the given order."""

    def merge(self, payloads: Sequence[bytes]) -> bytes:
        """Merge ordered WAV payloads into one WAV payload."""

        if not payloads:
            return encode_wav(
                PcmClip(channels=1, sample_width=2, frame_rate=DEFAULT_SAMPLE_RATE, frames=b"")
            )

        first = decode_wav(payloads[0])
        chunks = [first.frames]
        for index, payload in enumerate(payloads[1:], start=2):
            clip = decode_wav(payload)
            if not clip.same_format(first):
                raise ValueError(
                    f"Incompatible WAV parameters for segment {index}: "
                    f"{clip.channels}ch/{clip.sample_width * 8}bit/{clip.frame_rate}Hz, "
                    f"expected {first.channels}ch/{first.sample_width * 8}bit/{first.frame_rate}Hz"
                )
            chunks.append(clip.frames)

        return encode_wav(
            PcmClip(
                channels=first.channels,
                sample_width=first.sample_width,
                frame_rate=first.frame_rate,
                frames=b"".join(chunks),
            )
        )
