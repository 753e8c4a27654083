"""PCM conversion utilities."""
import numpy as np

from constants import PCM16_MAX, PCM16_MIN


def whole_sample_bytes(pcm_bytes: bytes) -> bytes:
    """Drop a truncated trailing byte so only whole PCM16 samples remain."""
    if len(pcm_bytes) % 2 != 0:
        return pcm_bytes[: len(pcm_bytes) - 1]
    return pcm_bytes


def pcm16le_to_int32(pcm_bytes: bytes) -> np.ndarray:
    """
    Decode PCM16 little-endian mono bytes to int32 samples.

    Widened to int32 so abs() and gain never wrap around at -32768.
    A trailing odd byte is ignored.
    """
    audio_i16 = np.frombuffer(whole_sample_bytes(pcm_bytes), dtype="<i2")
    return audio_i16.astype(np.int32)


def round_half_up(values: np.ndarray) -> np.ndarray:
    """
    Round to the nearest integer, halves toward +inf (2.5 -> 3, -2.5 -> -2).

    Unlike np.round, which rounds halves to even.
    """
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def samples_to_pcm16le(samples: np.ndarray) -> bytes:
    """
    Round, clamp to the PCM16 range and encode as little-endian bytes.
    """
    rounded = round_half_up(samples)
    clipped = np.clip(rounded, PCM16_MIN, PCM16_MAX)
    return clipped.astype("<i2").tobytes()


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    No resampling. No channel mixing.
    """
    audio_i16 = np.frombuffer(whole_sample_bytes(pcm_bytes), dtype="<i2")
    return audio_i16.astype(np.float32) / 32768.0
