"""In-memory WAV encoding helpers.

Responsibilities:
- Decode WAV payload bytes into PCM frames plus format parameters.
- Encode PCM frames back into WAV payload bytes.
- Measure playback duration from the decoded frame data.
"""

from __future__ import annotations

from dataclasses import dataclass
import io
import wave

DEFAULT_SAMPLE_RATE = 24000


@dataclass(frozen=True, slots=True)
class PcmClip:
    """Decoded PCM audio with its WAV format parameters."""

    channels: int
    sample_width: int
    frame_rate: int
    frames: bytes

    @property
    def frame_width(self) -> int:
        """Return the byte width of one frame across all channels."""

        return self.channels * self.sample_width

    @property
    def frame_count(self) -> int:
        """Return the number of complete frames."""

        return len(self.frames) // self.frame_width if self.frame_width else 0

    @property
    def duration_seconds(self) -> float:
        """Return playback duration in seconds."""

        if self.frame_rate <= 0:
            return 0.0
        return self.frame_count / float(self.frame_rate)

    def same_format(self, other: PcmClip) -> bool:
        """Return whether two clips can be concatenated without conversion."""

        return (
            self.channels == other.channels
            and self.sample_width == other.sample_width
            and self.frame_rate == other.frame_rate
        )


def decode_wav(payload: bytes) -> PcmClip:
    """Decode WAV bytes or raise `ValueError` for unreadable payloads.

    Frames are counted from the data actually present, since streamed
    provider responses may carry a placeholder frame count in the header.
    """

    try:
        with wave.open(io.BytesIO(payload), "rb") as wav_file:
            channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            frame_rate = wav_file.getframerate()
            frames = wav_file.readframes(wav_file.getnframes())
    except (wave.Error, EOFError) as exc:
        raise ValueError(f"Audio payload is not a readable WAV stream: {exc}") from exc
    if frame_rate <= 0:
        raise ValueError("Audio payload has an invalid WAV sample rate.")
    return PcmClip(
        channels=channels,
        sample_width=sample_width,
        frame_rate=frame_rate,
        frames=frames,
    )


def encode_wav(clip: PcmClip) -> bytes:
    """Encode a PCM clip as WAV bytes."""

    with io.BytesIO() as buffer:
        with wave.open(buffer, "wb") as wav_file:
            wav_file.setnchannels(clip.channels)
            wav_file.setsampwidth(clip.sample_width)
            wav_file.setframerate(clip.frame_rate)
            wav_file.writeframes(clip.frames)
        return buffer.getvalue()


def pcm16_to_wav(frames: bytes, frame_rate: int = DEFAULT_SAMPLE_RATE) -> bytes:
    """Wrap raw 16-bit mono little-endian PCM in a WAV container."""

    return encode_wav(PcmClip(channels=1, sample_width=2, frame_rate=frame_rate, frames=frames))


def wav_duration_seconds(payload: bytes) -> float:
    """Return playback duration of a WAV payload."""

    return decode_wav(payload).duration_seconds
