"""
Process-wide capture buffer for the in-progress utterance.

Requirements:
- One blob per utterance, owned by the process (not per connection)
- Length is always even (whole PCM16 samples only)
- append() and drain_and_clear() are mutually exclusive
- Idle eviction: cleared when no datagram arrived for the idle timeout
- Deterministic, synchronous operations; the mutex is never held across
  an await
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from constants import (
    CAPTURE_IDLE_TIMEOUT_S,
    CAPTURE_SWEEP_INTERVAL_S,
    bytes_to_seconds,
)
from observability.logger import log_event


Clock = Callable[[], float]


@dataclass(frozen=True)
class CaptureSnapshot:
    """
    Read-only view of the buffer for status reporting.

    Informational only; the buffer may change right after it is taken.
    """
    num_bytes: int
    audio_seconds: float
    idle_seconds: float | None


class CaptureBuffer:
    """
    Mutex-guarded accumulator of conditioned PCM across datagrams.

    Consumers must use drain_and_clear(); there is no separate read
    followed by a clear, so a datagram arriving mid-drain is either fully
    included in the drained utterance or fully kept for the next one.
    """

    def __init__(
        self,
        *,
        idle_timeout_s: float = CAPTURE_IDLE_TIMEOUT_S,
        clock: Clock = time.monotonic,
    ) -> None:
        if idle_timeout_s <= 0:
            raise ValueError("idle_timeout_s must be > 0")

        self._idle_timeout_s = idle_timeout_s
        self._clock = clock
        self._lock = threading.Lock()
        self._data = bytearray()
        self._last_activity: float | None = None

    # -------------------------
    # Core operations
    # -------------------------

    def append(self, chunk: bytes) -> int:
        """
        Append conditioned PCM and refresh the activity timestamp.

        A trailing odd byte is dropped to keep whole samples only.

        Returns:
            Buffer length after the append.
        """
        if len(chunk) % 2 != 0:
            chunk = chunk[:-1]

        with self._lock:
            self._last_activity = self._clock()
            self._data.extend(chunk)
            return len(self._data)

    def drain_and_clear(self) -> bytes:
        """
        Atomically return the current contents and reset to empty.
        """
        with self._lock:
            out = bytes(self._data)
            self._data.clear()
            return out

    def clear(self) -> int:
        """
        Drop all buffered audio.

        Returns:
            Number of bytes discarded.
        """
        with self._lock:
            dropped = len(self._data)
            self._data.clear()
            return dropped

    def evict_if_idle(self, now: float | None = None) -> int:
        """
        Clear the buffer if no append happened within the idle timeout.

        Returns:
            Number of bytes evicted (0 if nothing was evicted).
        """
        with self._lock:
            if not self._data or self._last_activity is None:
                return 0
            current = self._clock() if now is None else now
            if current - self._last_activity <= self._idle_timeout_s:
                return 0
            dropped = len(self._data)
            self._data.clear()
            return dropped

    # -------------------------
    # Introspection helpers
    # -------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def snapshot(self) -> CaptureSnapshot:
        """Lightweight snapshot for logging / status."""
        with self._lock:
            num_bytes = len(self._data)
            last = self._last_activity
        idle = None if last is None else max(0.0, self._clock() - last)
        return CaptureSnapshot(
            num_bytes=num_bytes,
            audio_seconds=bytes_to_seconds(num_bytes),
            idle_seconds=idle,
        )


# ------------------------------------------------------------------
# Background sweep
# ------------------------------------------------------------------

async def sweep_forever(
    buffer: CaptureBuffer,
    *,
    interval_s: float = CAPTURE_SWEEP_INTERVAL_S,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """
    Periodically evict stale audio and report length changes.

    Runs until cancelled. Independent of sessions: a session ending or
    failing never stops the sweep.
    """
    last_reported = len(buffer)
    while True:
        await sleep(interval_s)
        last_reported = sweep_once(buffer, last_reported=last_reported)


def sweep_once(buffer: CaptureBuffer, *, last_reported: int) -> int:
    """
    One sweep tick: idle eviction followed by the status report.

    Returns:
        The buffer length reported by this tick, for the next comparison.
    """
    evicted = buffer.evict_if_idle()
    if evicted:
        log_event({
            "event_type": "CAPTURE_BUFFER_IDLE_CLEARED",
            "bytes_dropped": evicted,
            "audio_seconds_dropped": bytes_to_seconds(evicted),
        })

    snap = buffer.snapshot()
    if snap.num_bytes != last_reported:
        log_event({
            "event_type": "CAPTURE_BUFFER_STATUS",
            "bytes": snap.num_bytes,
            "previous_bytes": last_reported,
            "audio_seconds": snap.audio_seconds,
        })
    return snap.num_bytes
