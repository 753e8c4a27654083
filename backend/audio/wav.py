"""
WAV container encoding (pure).

Layout (44-byte canonical header, all integers little-endian):
    RIFF <36 + data_len> WAVE
    "fmt " <16> <format=1> <channels> <sample_rate> <byte_rate>
           <block_align> <bits_per_sample>
    "data" <data_len> <pcm payload>

No validation of the payload is done here; the utterance validator runs
upstream.
"""

from __future__ import annotations

import io
import struct
import wave
from dataclasses import dataclass

from constants import (
    AudioFormat,
    BITS_PER_SAMPLE,
    CAPTURE_CHANNELS,
    CAPTURE_SAMPLE_RATE_HZ,
    WAV_FMT_CHUNK_BYTES,
    WAV_FORMAT_PCM,
    WAV_HEADER_BYTES,
)

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def encode_wav(
    pcm_bytes: bytes,
    *,
    sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
    channels: int = CAPTURE_CHANNELS,
    bits_per_sample: int = BITS_PER_SAMPLE,
) -> bytes:
    """
    Wrap raw PCM in a canonical 44-byte WAV header.
    """
    fmt = AudioFormat(
        sample_rate_hz=sample_rate_hz,
        channels=channels,
        bits_per_sample=bits_per_sample,
    )
    data_len = len(pcm_bytes)

    header = _HEADER.pack(
        b"RIFF",
        WAV_HEADER_BYTES - 8 + data_len,
        b"WAVE",
        b"fmt ",
        WAV_FMT_CHUNK_BYTES,
        WAV_FORMAT_PCM,
        fmt.channels,
        fmt.sample_rate_hz,
        fmt.byte_rate,
        fmt.block_align,
        fmt.bits_per_sample,
        b"data",
        data_len,
    )
    return header + pcm_bytes


@dataclass(frozen=True)
class DecodedWav:
    """PCM payload and format read back from a WAV container."""
    pcm_bytes: bytes
    sample_rate_hz: int
    channels: int
    bits_per_sample: int


def decode_wav(wav_bytes: bytes) -> DecodedWav:
    """
    Read a PCM WAV container.

    Raises:
        wave.Error / EOFError if the container is malformed.
    """
    with wave.open(io.BytesIO(wav_bytes), "rb") as wf:
        return DecodedWav(
            pcm_bytes=wf.readframes(wf.getnframes()),
            sample_rate_hz=wf.getframerate(),
            channels=wf.getnchannels(),
            bits_per_sample=wf.getsampwidth() * 8,
        )
