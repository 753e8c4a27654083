"""
Transcription collaborator contract.

This module defines the *interface only*: no buffering, validation,
retries, timers, or session decisions live here.

Key invariants:
- Input is one complete WAV container (PCM16 mono @ 16kHz).
- Output is the transcript text; an empty string is a valid result and is
  handled by the session, not the backend.
- Failures are raised as TranscriptionError with a kind; backends never
  retry on their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class TranscriptionErrorKind(str, Enum):
    """
    Failure classification for a transcription call.

    NETWORK:
        The request never produced a response (connect failure, timeout).
    SERVER:
        The backend answered with an error status or failed internally.
    MALFORMED:
        The backend answered, but the body was not a usable transcript.
    """
    NETWORK = "network"
    SERVER = "server"
    MALFORMED = "malformed"


class TranscriptionError(Exception):
    """Raised by a Transcriber when a transcript could not be produced."""

    def __init__(self, kind: TranscriptionErrorKind, message: str) -> None:
        super().__init__(f"{kind.value}: {message}")
        self.kind = kind


class Transcriber(ABC):
    """
    Abstract interface for a transcription backend (bytes -> text).

    Implementations may be a cloud endpoint or a local engine; the session
    depends only on this contract.

    Non-responsibilities:
    - No signal validation (done before the call)
    - No fallback text for empty transcripts
    - No retry policy
    """

    name: str = "transcriber"

    @abstractmethod
    async def transcribe(self, wav_bytes: bytes) -> str:
        """
        Transcribe one WAV container.

        Raises:
            TranscriptionError on any failure.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release backend resources. Default: nothing to release."""
