"""
Signal conditioning for captured PCM (pure).

Per sample s (signed 16-bit):
- |s| < threshold          -> 0 (noise gate)
- otherwise                -> clamp(round(s * gain), -32768, 32767)

Stateless: no cross-chunk state, so conditioning a buffer equals
conditioning its chunks and concatenating the results (for chunks that
hold whole samples).
"""

from __future__ import annotations

import numpy as np

from audio.pcm import pcm16le_to_int32, samples_to_pcm16le
from constants import CAPTURE_GAIN, NOISE_GATE_THRESHOLD


def condition_pcm(
    pcm_bytes: bytes,
    *,
    threshold: int = NOISE_GATE_THRESHOLD,
    gain: float = CAPTURE_GAIN,
) -> bytes:
    """
    Apply the noise gate and fixed gain to a PCM16 LE mono chunk.

    Returns a byte sequence of the same length. A trailing odd byte is not
    interpreted as a sample and is passed through unchanged.
    """
    if not pcm_bytes:
        return b""

    samples = pcm16le_to_int32(pcm_bytes)
    amplified = samples.astype(np.float64) * gain
    gated = np.where(np.abs(samples) < threshold, 0.0, amplified)

    out = samples_to_pcm16le(gated)
    if len(pcm_bytes) % 2 != 0:
        out += pcm_bytes[-1:]
    return out
