"""
Session error taxonomy.

Every kind except TRANSPORT_ERROR is reported to the device as a single
{"error": "<message>"} line before the connection is closed.
TRANSPORT_ERROR means the device is already gone: nothing is written.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Terminal failure kinds for one session."""
    NO_AUDIO = "NO_AUDIO"
    WEAK_SIGNAL = "WEAK_SIGNAL"
    TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
    DIALOGUE_FAILED = "DIALOGUE_FAILED"
    REPLY_DECODE_FAILED = "REPLY_DECODE_FAILED"
    REPLY_FETCH_FAILED = "REPLY_FETCH_FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"


CLIENT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NO_AUDIO: (
        "No audio data received. Record a message before requesting a reply."
    ),
    ErrorKind.WEAK_SIGNAL: "No significant audio detected",
    ErrorKind.TRANSCRIPTION_FAILED: "Error during transcription",
    ErrorKind.DIALOGUE_FAILED: "Error getting AI response",
    ErrorKind.REPLY_DECODE_FAILED: "Error converting audio",
    ErrorKind.REPLY_FETCH_FAILED: "Error fetching audio",
}


class SessionError(Exception):
    """
    Terminal session failure.

    kind:
        Taxonomy entry; selects the client message.
    detail:
        Diagnostic text for logs only (never sent to the device).
    sub_kind:
        Optional refinement (e.g. transcription network/server/malformed).
    """

    def __init__(
        self,
        kind: ErrorKind,
        detail: str = "",
        *,
        sub_kind: str | None = None,
    ) -> None:
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
        self.kind = kind
        self.detail = detail
        self.sub_kind = sub_kind

    @property
    def client_message(self) -> str | None:
        """Message reported to the device, or None if nothing is sent."""
        return CLIENT_MESSAGES.get(self.kind)
