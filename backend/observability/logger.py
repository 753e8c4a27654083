"""
Structured event log for the bridge.

One JSON object per line on stdout, flushed per event. Every event is
stamped with ts_ms (wall clock) unless the caller already set one.
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Callable, Mapping


# ------------------------------------------------------------------
# Output sink (tests replace _print)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print


def now_ms() -> int:
    """Wall-clock milliseconds, used for event timestamps only."""
    return time.time_ns() // 1_000_000


def _dumps(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def log_event(event: Mapping[str, Any]) -> None:
    """
    Emit one event line.

    Callers pass event_type, plus session_id for session-scoped events.
    An event that cannot be serialized is replaced by a
    LOGGER_SERIALIZATION_ERROR event; this function never raises.
    """
    payload: dict[str, Any] = {"ts_ms": now_ms(), **event}
    try:
        line = _dumps(payload)
    except (TypeError, ValueError) as e:
        line = _dumps({
            "ts_ms": now_ms(),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        })

    _print(line)
