"""
UDP audio ingress.

Responsibilities:
- Receive datagrams on the configured address
- Classify (framed vs raw), condition and append to the capture buffer
- Keep ingress counters for the status surface

Datagram handling is synchronous and never awaits a session: the only
shared step is the capture buffer's short mutex.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from typing import Any

from audio.capture_buffer import CaptureBuffer
from audio.conditioning import condition_pcm
from observability.logger import log_event
from protocol.datagram import classify_datagram


@dataclass
class IngressStats:
    """Monotonic ingress counters (informational)."""
    datagrams: int = 0
    framed: int = 0
    raw: int = 0
    malformed_headers: int = 0
    bytes: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def ingest_datagram(
    data: bytes,
    *,
    buffer: CaptureBuffer,
    stats: IngressStats,
    addr: Any = None,
    last_stream: str | None = None,
) -> str | None:
    """
    Run one datagram through classify -> condition -> append.

    Returns:
        The framed stream name seen in this datagram (or the previous one
        for raw datagrams), so callers can detect stream changes.
    """
    packet = classify_datagram(data)

    stats.datagrams += 1
    stats.bytes += len(data)

    if packet.header_malformed:
        stats.malformed_headers += 1
        log_event({
            "event_type": "FRAMED_HEADER_MALFORMED",
            "source": _format_addr(addr),
            "datagram_bytes": len(data),
        })

    if packet.header is not None:
        stats.framed += 1
        stream = packet.header.stream_name
        if stream != last_stream:
            log_event({
                "event_type": "FRAMED_STREAM_DETECTED",
                "source": _format_addr(addr),
                "stream_name": stream,
                "sample_rate_hz": packet.header.sample_rate_hz,
                "channels": packet.header.channels,
                "data_format": packet.header.data_format,
            })
        last_stream = stream
    else:
        stats.raw += 1

    buffer.append(condition_pcm(packet.pcm_bytes))
    return last_stream


class AudioIngressProtocol(asyncio.DatagramProtocol):
    """asyncio endpoint feeding the capture buffer."""

    def __init__(self, *, buffer: CaptureBuffer, stats: IngressStats) -> None:
        self._buffer = buffer
        self._stats = stats
        self._last_stream: str | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        log_event({
            "event_type": "UDP_INGRESS_LISTENING",
            "address": _format_addr(transport.get_extra_info("sockname")),
        })

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._last_stream = ingest_datagram(
            data,
            buffer=self._buffer,
            stats=self._stats,
            addr=addr,
            last_stream=self._last_stream,
        )

    def error_received(self, exc: Exception) -> None:
        log_event({
            "event_type": "UDP_INGRESS_ERROR",
            "exception": type(exc).__name__,
            "message": str(exc),
        })


async def start_udp_ingress(
    *,
    host: str,
    port: int,
    buffer: CaptureBuffer,
    stats: IngressStats,
) -> asyncio.DatagramTransport:
    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(
        lambda: AudioIngressProtocol(buffer=buffer, stats=stats),
        local_addr=(host, port),
    )
    return transport


def _format_addr(addr: Any) -> str | None:
    if not addr:
        return None
    return f"{addr[0]}:{addr[1]}"
