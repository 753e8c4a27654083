# backend/protocol/datagram.py
"""
Datagram classification for UDP audio ingress.

Framed-audio header (28 bytes, little-endian):
    0   4B  magic tag "VBAN"
    4   4B  sample rate (u32)
    8   1B  samples per frame
    9   1B  channel count
    10  1B  data format code
    11  1B  protocol / format byte
    12  4B  reserved
    16  8B  stream name (null-padded ASCII)
    24  4B  frame counter (u32)
    28  ..  PCM payload

Datagrams without the magic tag are raw PCM16 LE mono. No datagram is
ever rejected: a malformed header degrades to the raw-PCM fallback.

Usage example:

    packet = classify_datagram(data)
    buffer.append(condition_pcm(packet.pcm_bytes))
"""

from __future__ import annotations

import struct

from audio.frames import FramedAudioHeader, PcmPacket
from constants import (
    FRAMED_HEADER_BYTES,
    FRAMED_HEADER_MAGIC,
    FRAMED_STREAM_NAME_BYTES,
)


# -------------------------
# Exceptions
# -------------------------

class FramedHeaderError(Exception):
    """
    Raised when a datagram carries the magic tag but its header fields
    cannot be interpreted.

    Never escapes classify_datagram(); the datagram is kept as raw PCM.
    """


# -------------------------
# Low-level helpers
# -------------------------

_HEADER = struct.Struct("<4sIBBBB4s8sI")


def has_framed_header(datagram: bytes) -> bool:
    """Return True if the datagram is long enough and starts with the magic tag."""
    return (
        len(datagram) >= FRAMED_HEADER_BYTES
        and datagram[: len(FRAMED_HEADER_MAGIC)] == FRAMED_HEADER_MAGIC
    )


def parse_framed_header(datagram: bytes) -> FramedAudioHeader:
    """
    Parse the 28-byte framed-audio header at offset 0.

    Raises:
        FramedHeaderError if the header is truncated or the stream name
        is not ASCII.
    """
    try:
        (
            _magic,
            sample_rate,
            samples_per_frame,
            channels,
            data_format,
            protocol,
            _reserved,
            raw_name,
            frame_counter,
        ) = _HEADER.unpack_from(datagram, 0)
        stream_name = raw_name.split(b"\x00", 1)[0].decode("ascii")
    except (struct.error, UnicodeDecodeError) as e:
        raise FramedHeaderError(f"malformed framed-audio header: {e}") from e

    return FramedAudioHeader(
        sample_rate_hz=sample_rate,
        samples_per_frame=samples_per_frame,
        channels=channels,
        data_format=data_format,
        protocol=protocol,
        stream_name=stream_name,
        frame_counter=frame_counter,
    )


# -------------------------
# Classification
# -------------------------

def classify_datagram(datagram: bytes) -> PcmPacket:
    """
    Classify one inbound datagram and return its PCM payload.

    Pure function; never raises.
    """
    if not has_framed_header(datagram):
        return PcmPacket(pcm_bytes=datagram)

    try:
        header = parse_framed_header(datagram)
    except FramedHeaderError:
        return PcmPacket(pcm_bytes=datagram, header_malformed=True)

    return PcmPacket(pcm_bytes=datagram[FRAMED_HEADER_BYTES:], header=header)


# -------------------------
# Encoding (test clients / tooling)
# -------------------------

def build_framed_packet(
    pcm_bytes: bytes,
    *,
    sample_rate_hz: int,
    stream_name: str,
    frame_counter: int = 0,
    samples_per_frame: int | None = None,
    channels: int = 1,
    data_format: int = 1,
    protocol: int = 0,
) -> bytes:
    """
    Build a framed-audio datagram (header + payload).

    samples_per_frame defaults to the payload's sample count, capped to
    the one-byte field.
    """
    name = stream_name.encode("ascii")
    if len(name) > FRAMED_STREAM_NAME_BYTES:
        raise ValueError(
            f"stream_name longer than {FRAMED_STREAM_NAME_BYTES} bytes: {stream_name!r}"
        )
    if samples_per_frame is None:
        samples_per_frame = min(len(pcm_bytes) // 2, 0xFF)

    header = _HEADER.pack(
        FRAMED_HEADER_MAGIC,
        sample_rate_hz,
        samples_per_frame,
        channels,
        data_format,
        protocol,
        b"\x00" * 4,
        name.ljust(FRAMED_STREAM_NAME_BYTES, b"\x00"),
        frame_counter,
    )
    return header + pcm_bytes
