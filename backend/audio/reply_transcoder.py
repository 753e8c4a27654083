"""
Reply audio transcoding: compressed reply -> PCM16 @ playback rate.

Pipeline:
1. Decode compressed bytes (MP3 by convention, 44.1kHz) via libsndfile
2. Downmix to mono
3. Linear-interpolation resample to the device rate, scaled by the
   playback-rate multiplier (speed and pitch change together)
4. Truncate to the byte budget

Output is raw PCM (no container): the device receives a plain byte pipe.
"""

from __future__ import annotations

import io
from typing import Callable

import numpy as np
import soundfile as sf

from audio.pcm import round_half_up
from constants import (
    PCM16_MAX,
    PCM16_MIN,
    PLAYBACK_RATE_DEFAULT,
    REPLY_MAX_BYTES_DEFAULT,
    REPLY_SOURCE_RATE_HZ,
    REPLY_TARGET_RATE_HZ,
)


class ReplyDecodeError(Exception):
    """Raised when a compressed reply payload cannot be decoded."""


DecodeFn = Callable[[bytes], tuple[np.ndarray, int]]


def decode_compressed(payload: bytes) -> tuple[np.ndarray, int]:
    """
    Decode a compressed audio payload to mono int16 samples.

    Returns:
        (samples, sample_rate_hz)

    Raises:
        ReplyDecodeError if libsndfile cannot read the payload.
    """
    if not payload:
        raise ReplyDecodeError("empty reply payload")

    try:
        data, sample_rate = sf.read(io.BytesIO(payload), dtype="int16", always_2d=True)
    except (sf.SoundFileError, RuntimeError) as e:
        raise ReplyDecodeError(f"cannot decode reply audio: {e}") from e

    if data.shape[1] > 1:
        mono = round_half_up(data.astype(np.float64).mean(axis=1)).astype(np.int16)
    else:
        mono = data[:, 0]

    return mono, int(sample_rate or REPLY_SOURCE_RATE_HZ)


def resample_linear(
    samples: np.ndarray,
    *,
    source_rate_hz: int = REPLY_SOURCE_RATE_HZ,
    target_rate_hz: int = REPLY_TARGET_RATE_HZ,
    playback_rate: float = PLAYBACK_RATE_DEFAULT,
) -> np.ndarray:
    """
    Resample by linear interpolation.

    ratio = (source / target) * playback_rate. Output index i covers source
    position i * ratio for as long as that position is < n - 1, so every
    output sample lies between its two bracketing input samples.

    Returns an empty int16 array (not an error) when ratio <= 0 or fewer
    than two input samples are available.
    """
    n = int(samples.size)
    if target_rate_hz <= 0:
        return np.zeros(0, dtype=np.int16)

    ratio = (source_rate_hz / target_rate_hz) * playback_rate
    if not np.isfinite(ratio) or ratio <= 0 or n < 2:
        return np.zeros(0, dtype=np.int16)

    # One extra candidate absorbs float error in the division; the mask
    # below enforces the exact bound.
    count = int(np.ceil((n - 1) / ratio)) + 1
    positions = np.arange(count, dtype=np.float64) * ratio
    positions = positions[positions < n - 1]

    i0 = np.floor(positions).astype(np.int64)
    i1 = np.minimum(i0 + 1, n - 1)
    frac = positions - i0

    src = samples.astype(np.float64)
    out = src[i0] * (1.0 - frac) + src[i1] * frac
    return np.clip(round_half_up(out), PCM16_MIN, PCM16_MAX).astype(np.int16)


class ReplyTranscoder:
    """Converts compressed reply payloads to bounded device-rate PCM."""

    def __init__(
        self,
        *,
        playback_rate: float = PLAYBACK_RATE_DEFAULT,
        max_bytes: int = REPLY_MAX_BYTES_DEFAULT,
        target_rate_hz: int = REPLY_TARGET_RATE_HZ,
        decode: DecodeFn = decode_compressed,
    ) -> None:
        if max_bytes < 0:
            raise ValueError("max_bytes must be >= 0")

        self._playback_rate = playback_rate
        self._max_bytes = max_bytes - (max_bytes % 2)
        self._target_rate_hz = target_rate_hz
        self._decode = decode

    def transcode(self, payload: bytes) -> bytes:
        """
        Decode, resample and bound one reply payload.

        Raises:
            ReplyDecodeError if the payload cannot be decoded.
        """
        samples, source_rate_hz = self._decode(payload)

        resampled = resample_linear(
            samples,
            source_rate_hz=source_rate_hz,
            target_rate_hz=self._target_rate_hz,
            playback_rate=self._playback_rate,
        )
        pcm = resampled.astype("<i2").tobytes()
        return pcm[: self._max_bytes]
