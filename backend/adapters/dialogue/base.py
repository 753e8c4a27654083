"""
Dialogue collaborator contract.

Purpose:
- Define the interface for one conversational turn:
  transcript text in, reply text + reply audio reference out.
- Keep retries, timeouts, and audio handling OUT of the adapter.

Rules:
- This file contains NO logic.
- No retries.
- No knowledge of the device transport or the capture buffer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class DialogueError(Exception):
    """Raised when a dialogue turn produced no usable reply."""


@dataclass(frozen=True)
class DialogueReply:
    """
    Reply for one turn.

    message:
        Reply text (may be empty).

    audio_uri:
        Either an inline data URI carrying compressed audio
        (data:audio/mpeg;base64,...) or an http(s) URL to stream.
        May be empty if the backend produced no audio.
    """
    message: str
    audio_uri: str


class DialogueClient(ABC):
    """
    Abstract base class for dialogue backends.

    The adapter is a *dumb pipe*: transcript -> vendor -> reply.

    Session responsibilities (NOT here):
    - When to call
    - Timeouts
    - What to do with the reply audio
    """

    @abstractmethod
    async def interact(self, transcript: str) -> DialogueReply:
        """
        Run one dialogue turn.

        Contract:
        - Must NOT retry internally.
        - Raises DialogueError when the backend fails or its response
          carries no reply payload.
        """
        raise NotImplementedError
