"""
Inbound audio packet primitives.

Pure data containers only.
No behavior, no parsing, no buffering.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class FramedAudioHeader:
    """
    Metadata carried by the 28-byte framed-audio header.

    Declared values are diagnostic only: the bridge always treats the
    payload as PCM16 LE mono at the capture rate and never enforces them.
    """
    sample_rate_hz: int
    samples_per_frame: int
    channels: int
    data_format: int
    protocol: int
    stream_name: str
    frame_counter: int


@dataclass(frozen=True)
class PcmPacket:
    """
    One classified datagram.

    pcm_bytes:
        Raw PCM16 payload (header stripped when one was present).

    header:
        Parsed framed-audio header, or None for raw-PCM datagrams
        (including datagrams whose header failed to parse).

    header_malformed:
        True when the magic tag matched but the header could not be parsed.
    """
    pcm_bytes: bytes
    header: FramedAudioHeader | None = None
    header_malformed: bool = False

    @property
    def framed(self) -> bool:
        """True when the payload came from a framed-audio datagram."""
        return self.header is not None
