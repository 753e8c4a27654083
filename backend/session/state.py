"""
Session state enumeration and legal transitions.

Rules:
- Sessions move strictly forward through the happy path.
- ERROR is absorbing and reachable from any non-terminal state.
- CLOSED and ERROR are terminal.
"""

from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    """Control states for one device connection."""

    AWAITING_CONFIG = "AWAITING_CONFIG"
    VALIDATING = "VALIDATING"
    ENCODING = "ENCODING"
    TRANSCRIBING = "TRANSCRIBING"
    DIALOGUING = "DIALOGUING"
    STREAMING_REPLY = "STREAMING_REPLY"
    CLOSED = "CLOSED"
    ERROR = "ERROR"


_HAPPY_PATH: tuple[SessionState, ...] = (
    SessionState.AWAITING_CONFIG,
    SessionState.VALIDATING,
    SessionState.ENCODING,
    SessionState.TRANSCRIBING,
    SessionState.DIALOGUING,
    SessionState.STREAMING_REPLY,
    SessionState.CLOSED,
)

TERMINAL_STATES: frozenset[SessionState] = frozenset(
    {SessionState.CLOSED, SessionState.ERROR}
)

ALLOWED_TRANSITIONS: frozenset[tuple[SessionState, SessionState]] = frozenset(
    set(zip(_HAPPY_PATH, _HAPPY_PATH[1:]))
    | {
        (state, SessionState.ERROR)
        for state in SessionState
        if state not in TERMINAL_STATES
    }
)


class IllegalTransition(RuntimeError):
    """Raised when code attempts a transition outside ALLOWED_TRANSITIONS."""


def check_transition(current: SessionState, target: SessionState) -> None:
    """
    Validate a transition.

    Raises:
        IllegalTransition if (current, target) is not allowed.
    """
    if (current, target) not in ALLOWED_TRANSITIONS:
        raise IllegalTransition(f"{current.value} -> {target.value}")
