"""
TCP session endpoint.

One accepted connection == one SessionOrchestrator run. A failure inside
a session never escapes its connection handler, so other sessions, the
UDP ingress and the buffer sweep are unaffected.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from adapters.asr.base import Transcriber
from adapters.dialogue.base import DialogueClient
from adapters.tts.remote_stream import RemoteAudioFetcher
from audio.capture_buffer import CaptureBuffer
from observability.logger import log_event
from session.orchestrator import SessionOrchestrator, SessionSettings, new_session_id


@dataclass(frozen=True)
class SessionDeps:
    """Process-wide collaborators shared by every session."""
    capture_buffer: CaptureBuffer
    transcriber: Transcriber
    dialogue: DialogueClient
    fetcher: RemoteAudioFetcher
    settings: SessionSettings


class SessionServer:
    """Owns the listening socket and the transcription lock."""

    def __init__(self, deps: SessionDeps) -> None:
        self._deps = deps
        self._transcription_lock = asyncio.Lock()
        self._server: asyncio.AbstractServer | None = None
        self.active_sessions = 0

    async def handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        session = SessionOrchestrator(
            session_id=new_session_id(),
            reader=reader,
            writer=writer,
            capture_buffer=self._deps.capture_buffer,
            transcription_lock=self._transcription_lock,
            transcriber=self._deps.transcriber,
            dialogue=self._deps.dialogue,
            fetcher=self._deps.fetcher,
            settings=self._deps.settings,
        )

        self.active_sessions += 1
        try:
            await session.run()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SESSION_FATAL_ERROR",
                "session_id": session.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            writer.close()
        finally:
            self.active_sessions -= 1

    async def start(self, *, host: str, port: int) -> asyncio.AbstractServer:
        self._server = await asyncio.start_server(self.handle_connection, host, port)
        sockets = self._server.sockets or ()
        log_event({
            "event_type": "TCP_SESSION_LISTENING",
            "addresses": [
                "{}:{}".format(*sock.getsockname()[:2]) for sock in sockets
            ],
        })
        return self._server

    async def close(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
