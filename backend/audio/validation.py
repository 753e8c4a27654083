"""
Utterance validation gate.

Decides whether an accumulated capture holds enough signal to be worth
transcribing. These are heuristic noise-floor checks, not a voice
activity detector: quiet speech may be rejected and loud non-speech may
pass.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from audio.pcm import pcm16le_to_int32
from constants import MIN_MEAN_AMPLITUDE, MIN_PEAK_AMPLITUDE, MIN_UTTERANCE_BYTES


class RejectReason(str, Enum):
    """Why an utterance was rejected."""
    TOO_SHORT = "too_short"
    LOW_PEAK = "low_peak"
    LOW_MEAN = "low_mean"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validate_utterance().

    peak / mean_abs are reported for observability even when the
    utterance is rejected for length.
    """
    valid: bool
    num_bytes: int
    peak: int
    mean_abs: float
    reason: RejectReason | None = None


def validate_utterance(
    pcm_bytes: bytes,
    *,
    min_bytes: int = MIN_UTTERANCE_BYTES,
    min_peak: int = MIN_PEAK_AMPLITUDE,
    min_mean: float = MIN_MEAN_AMPLITUDE,
) -> ValidationResult:
    """
    Check length, peak and mean absolute amplitude of an utterance.

    Rejects when:
    - fewer than min_bytes bytes were captured, or
    - the peak absolute sample is below min_peak, or
    - the mean absolute sample is below min_mean.
    """
    samples = np.abs(pcm16le_to_int32(pcm_bytes))
    peak = int(samples.max()) if samples.size else 0
    mean_abs = float(samples.mean()) if samples.size else 0.0

    reason: RejectReason | None = None
    if len(pcm_bytes) < min_bytes:
        reason = RejectReason.TOO_SHORT
    elif peak < min_peak:
        reason = RejectReason.LOW_PEAK
    elif mean_abs < min_mean:
        reason = RejectReason.LOW_MEAN

    return ValidationResult(
        valid=reason is None,
        num_bytes=len(pcm_bytes),
        peak=peak,
        mean_abs=mean_abs,
        reason=reason,
    )
