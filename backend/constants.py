"""
BEHAVIOR-AS-CONSTANTS
---------------------
Single source of truth for all behavioral invariants of the bridge.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# =============================================================================
# Capture Audio Format (PCM16 mono @ 16kHz)
# =============================================================================

CAPTURE_SAMPLE_RATE_HZ: Final[int] = 16_000
CAPTURE_CHANNELS: Final[int] = 1
SAMPLE_WIDTH_BYTES: Final[int] = 2  # PCM16 (signed 16-bit)
BITS_PER_SAMPLE: Final[int] = SAMPLE_WIDTH_BYTES * 8

PCM16_MIN: Final[int] = -32_768
PCM16_MAX: Final[int] = 32_767

# =============================================================================
# Framed-Audio Datagram Header (VBAN-style)
# =============================================================================
# 4B magic | 4B sample rate (u32 LE) | 1B samples/frame | 1B channels
# 1B data format | 1B protocol/format | 4B reserved | 8B stream name
# 4B frame counter (u32 LE)

FRAMED_HEADER_MAGIC: Final[bytes] = b"VBAN"
FRAMED_HEADER_BYTES: Final[int] = 28
FRAMED_STREAM_NAME_BYTES: Final[int] = 8

# =============================================================================
# Signal Conditioning
# =============================================================================

NOISE_GATE_THRESHOLD: Final[int] = 500
CAPTURE_GAIN: Final[float] = 5.0

# =============================================================================
# Capture Buffer Lifecycle
# =============================================================================

CAPTURE_IDLE_TIMEOUT_S: Final[float] = 300.0
CAPTURE_SWEEP_INTERVAL_S: Final[float] = 5.0

# =============================================================================
# Utterance Validation (heuristic noise-floor gates, not a VAD)
# =============================================================================

MIN_UTTERANCE_BYTES: Final[int] = 1_024
MIN_PEAK_AMPLITUDE: Final[int] = 1_000
MIN_MEAN_AMPLITUDE: Final[int] = 100

# =============================================================================
# WAV Container
# =============================================================================

WAV_HEADER_BYTES: Final[int] = 44
WAV_FMT_CHUNK_BYTES: Final[int] = 16
WAV_FORMAT_PCM: Final[int] = 1

# =============================================================================
# Reply Audio
# =============================================================================

REPLY_SOURCE_RATE_HZ: Final[int] = 44_100
REPLY_TARGET_RATE_HZ: Final[int] = CAPTURE_SAMPLE_RATE_HZ
PLAYBACK_RATE_DEFAULT: Final[float] = 1.0

# 15 s of PCM16 mono @ 16kHz
REPLY_MAX_BYTES_DEFAULT: Final[int] = 480_000
REPLY_STREAM_CHUNK_BYTES: Final[int] = 4_096

# Pause between the text frame and the first audio byte so the device can
# tell the two apart when the transport coalesces writes.
TEXT_FRAME_DELAY_S: Final[float] = 0.1

# =============================================================================
# Session Protocol
# =============================================================================

CONFIG_MAX_BYTES: Final[int] = 4_096
CONFIG_WAIT_TIMEOUT_S: Final[float] = 0.5
INCLUDE_TEXT_DEFAULT: Final[bool] = False

FALLBACK_TRANSCRIPT: Final[str] = (
    "I could not detect any speech in the audio. "
    "Could you please try speaking again?"
)

# =============================================================================
# External Calls
# =============================================================================

ASR_TIMEOUT_S: Final[float] = 30.0
DIALOGUE_TIMEOUT_S: Final[float] = 15.0
REPLY_FETCH_TIMEOUT_S: Final[float] = 15.0

# =============================================================================
# Network Defaults
# =============================================================================

UDP_PORT_DEFAULT: Final[int] = 6_980
TCP_PORT_DEFAULT: Final[int] = 12_345
STATUS_PORT_DEFAULT: Final[int] = 8_000

# =============================================================================
# Helper Functions
# =============================================================================

def bytes_to_seconds(
    num_bytes: int,
    *,
    sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
) -> float:
    """
    Convert a PCM16 mono byte count to duration in seconds.

    Non-positive input returns 0.0.
    """
    if num_bytes <= 0:
        return 0.0
    return (num_bytes // SAMPLE_WIDTH_BYTES) / sample_rate_hz


# =============================================================================
# Convenience Bundles
# =============================================================================

@dataclass(frozen=True)
class AudioFormat:
    """
    Immutable bundle describing a PCM audio format.

    This is a convenience wrapper for passing format metadata around;
    it is NOT a second source of truth.
    """
    sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ
    channels: int = CAPTURE_CHANNELS
    bits_per_sample: int = BITS_PER_SAMPLE

    @property
    def block_align(self) -> int:
        """Bytes per sample frame across all channels."""
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        """Bytes per second of audio."""
        return self.sample_rate_hz * self.block_align
