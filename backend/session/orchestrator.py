"""
Session orchestrator: one TCP connection == one voice turn.

Responsibilities:
- Negotiate the optional per-connection config
- Drain and validate the shared capture buffer (under the process-wide
  transcription lock, so only one session consumes an utterance)
- Encode, transcribe and run the dialogue turn
- Stream the reply (optional text frame, then raw PCM) to the device
- Map collaborator failures onto the session error taxonomy
- Always close the connection and log the outcome

Not responsible for:
- Datagram ingestion (server.udp)
- Accepting connections (server.tcp)
- Vendor protocols (adapters)
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import httpx

from adapters.asr.base import Transcriber, TranscriptionError, TranscriptionErrorKind
from adapters.dialogue.base import DialogueClient, DialogueError, DialogueReply
from adapters.tts.remote_stream import RemoteAudioFetcher, ReplyFetchError
from audio.capture_buffer import CaptureBuffer
from audio.reply_transcoder import ReplyDecodeError, ReplyTranscoder
from audio.validation import validate_utterance
from audio.wav import encode_wav
from constants import (
    CONFIG_MAX_BYTES,
    FALLBACK_TRANSCRIPT,
    REPLY_STREAM_CHUNK_BYTES,
    TEXT_FRAME_DELAY_S,
    bytes_to_seconds,
)
from observability.logger import log_event
from observability.metrics import timed
from session.errors import ErrorKind, SessionError
from session.reply import (
    InlineReplyAudio,
    RemoteReplyAudio,
    ReplyAudio,
    resolve_reply_audio,
)
from session.session_config import SessionConfig
from session.state import SessionState, check_transition

if TYPE_CHECKING:
    from config import AppConfig


def new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# Settings
# ------------------------------------------------------------------

@dataclass(frozen=True)
class SessionSettings:
    """
    Per-session slice of the application configuration.

    Timeouts apply per external call, not to the whole session.
    """
    include_text_default: bool
    playback_rate: float
    reply_max_bytes: int
    asr_timeout_s: float
    dialogue_timeout_s: float
    config_wait_s: float
    text_frame_delay_s: float = TEXT_FRAME_DELAY_S
    stream_chunk_bytes: int = REPLY_STREAM_CHUNK_BYTES

    @staticmethod
    def from_config(config: AppConfig) -> SessionSettings:
        return SessionSettings(
            include_text_default=config.include_text_default,
            playback_rate=config.playback_rate,
            reply_max_bytes=config.reply_max_bytes,
            asr_timeout_s=config.asr_timeout_s,
            dialogue_timeout_s=config.dialogue_timeout_s,
            config_wait_s=config.config_wait_s,
        )


# ------------------------------------------------------------------
# Orchestrator
# ------------------------------------------------------------------

class SessionOrchestrator:
    """
    Drives one connection through the session state machine.

    run() never raises for session-level failures: every failure ends in
    the ERROR state, is reported to the device when it is still there,
    and the connection is closed.
    """

    def __init__(
        self,
        *,
        session_id: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        capture_buffer: CaptureBuffer,
        transcription_lock: asyncio.Lock,
        transcriber: Transcriber,
        dialogue: DialogueClient,
        fetcher: RemoteAudioFetcher,
        settings: SessionSettings,
    ) -> None:
        self.session_id = session_id
        self._reader = reader
        self._writer = writer
        self._buffer = capture_buffer
        self._lock = transcription_lock
        self._transcriber = transcriber
        self._dialogue = dialogue
        self._fetcher = fetcher
        self._settings = settings
        self._transcoder = ReplyTranscoder(
            playback_rate=settings.playback_rate,
            max_bytes=settings.reply_max_bytes,
        )

        self.state = SessionState.AWAITING_CONFIG
        self.error_kind: ErrorKind | None = None
        self._reply_started = False
        self._bytes_streamed = 0

    # -------------------------
    # Lifecycle
    # -------------------------

    async def run(self) -> None:
        log_event({
            "event_type": "SESSION_STARTED",
            "session_id": self.session_id,
            "peer": _peer_name(self._writer),
        })

        try:
            include_text = await self._negotiate_config()
            reply = await self._run_turn()
            await self._stream_reply(reply, include_text=include_text)
            self._transition(SessionState.CLOSED)
        except SessionError as e:
            await self._fail(e)
        finally:
            await self._close()
            log_event({
                "event_type": "SESSION_ENDED",
                "session_id": self.session_id,
                "state": self.state.value,
                "error_kind": self.error_kind.value if self.error_kind else None,
                "bytes_streamed": self._bytes_streamed,
            })

    def _transition(self, target: SessionState, **details: Any) -> None:
        check_transition(self.state, target)
        log_event({
            "event_type": "SESSION_STATE_CHANGED",
            "session_id": self.session_id,
            "from": self.state.value,
            "to": target.value,
            **details,
        })
        self.state = target

    # -------------------------
    # AWAITING_CONFIG
    # -------------------------

    async def _negotiate_config(self) -> bool:
        """
        Wait for the first inbound data event and parse it as config.

        EOF, a parse failure or the safety timeout all mean "no config".
        """
        default = self._settings.include_text_default
        try:
            raw = await asyncio.wait_for(
                self._reader.read(CONFIG_MAX_BYTES),
                timeout=self._settings.config_wait_s,
            )
        except asyncio.TimeoutError:
            raw = b""
        except ConnectionError as e:
            raise SessionError(ErrorKind.TRANSPORT_ERROR, f"config read: {e}") from e

        config = SessionConfig.parse(raw)
        include_text = config.resolve_include_text(default) if config else default

        log_event({
            "event_type": "SESSION_CONFIG",
            "session_id": self.session_id,
            "config_received": config is not None,
            "include_text": include_text,
        })
        return include_text

    # -------------------------
    # VALIDATING -> DIALOGUING
    # -------------------------

    async def _run_turn(self) -> DialogueReply:
        async with self._lock:
            self._transition(SessionState.VALIDATING)
            pcm = self._buffer.drain_and_clear()
            if not pcm:
                raise SessionError(ErrorKind.NO_AUDIO, "capture buffer empty")

            result = validate_utterance(pcm)
            if not result.valid:
                log_event({
                    "event_type": "UTTERANCE_REJECTED",
                    "session_id": self.session_id,
                    "reason": result.reason.value if result.reason else None,
                    "bytes": result.num_bytes,
                    "peak": result.peak,
                    "mean_abs": round(result.mean_abs, 2),
                })
                raise SessionError(
                    ErrorKind.WEAK_SIGNAL,
                    result.reason.value if result.reason else "",
                )

            self._transition(
                SessionState.ENCODING,
                audio_seconds=bytes_to_seconds(len(pcm)),
            )
            wav = encode_wav(pcm)

            self._transition(SessionState.TRANSCRIBING)
            transcript = await self._transcribe(wav)

            self._transition(SessionState.DIALOGUING)
            reply = await self._interact(transcript)

            self._buffer.clear()
            return reply

    async def _transcribe(self, wav: bytes) -> str:
        try:
            with timed(
                "transcription_latency",
                session_id=self.session_id,
                state=self.state.value,
                details={"backend": self._transcriber.name, "wav_bytes": len(wav)},
            ):
                text = await asyncio.wait_for(
                    self._transcriber.transcribe(wav),
                    timeout=self._settings.asr_timeout_s,
                )
        except TranscriptionError as e:
            raise SessionError(
                ErrorKind.TRANSCRIPTION_FAILED, str(e), sub_kind=e.kind.value
            ) from e
        except asyncio.TimeoutError as e:
            raise SessionError(
                ErrorKind.TRANSCRIPTION_FAILED,
                f"no transcript within {self._settings.asr_timeout_s}s",
                sub_kind=TranscriptionErrorKind.NETWORK.value,
            ) from e
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise SessionError(
                ErrorKind.TRANSCRIPTION_FAILED,
                f"{type(e).__name__}: {e}",
                sub_kind=TranscriptionErrorKind.SERVER.value,
            ) from e

        text = text.strip()
        log_event({
            "event_type": "TRANSCRIPT_RECEIVED",
            "session_id": self.session_id,
            "text": text,
        })

        if not text:
            log_event({
                "event_type": "TRANSCRIPT_EMPTY_FALLBACK",
                "session_id": self.session_id,
            })
            return FALLBACK_TRANSCRIPT
        return text

    async def _interact(self, transcript: str) -> DialogueReply:
        try:
            with timed(
                "dialogue_latency",
                session_id=self.session_id,
                state=self.state.value,
            ):
                reply = await asyncio.wait_for(
                    self._dialogue.interact(transcript),
                    timeout=self._settings.dialogue_timeout_s,
                )
        except DialogueError as e:
            raise SessionError(ErrorKind.DIALOGUE_FAILED, str(e)) from e
        except asyncio.TimeoutError as e:
            raise SessionError(
                ErrorKind.DIALOGUE_FAILED,
                f"no reply within {self._settings.dialogue_timeout_s}s",
            ) from e
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise SessionError(ErrorKind.DIALOGUE_FAILED, f"{type(e).__name__}: {e}") from e

        log_event({
            "event_type": "DIALOGUE_REPLY_RECEIVED",
            "session_id": self.session_id,
            "message": reply.message,
            "audio_kind": "inline" if reply.audio_uri.startswith("data:") else "remote",
        })
        return reply

    # -------------------------
    # STREAMING_REPLY
    # -------------------------

    async def _stream_reply(self, reply: DialogueReply, *, include_text: bool) -> None:
        self._transition(SessionState.STREAMING_REPLY, include_text=include_text)

        try:
            audio: ReplyAudio = resolve_reply_audio(reply.audio_uri)
        except ReplyDecodeError as e:
            raise SessionError(ErrorKind.REPLY_DECODE_FAILED, str(e)) from e
        except ReplyFetchError as e:
            raise SessionError(ErrorKind.REPLY_FETCH_FAILED, str(e)) from e

        if isinstance(audio, InlineReplyAudio):
            await self._stream_inline(audio, reply.message, include_text=include_text)
        else:
            await self._stream_remote(audio, reply.message, include_text=include_text)

        log_event({
            "event_type": "REPLY_STREAM_COMPLETE",
            "session_id": self.session_id,
            "bytes": self._bytes_streamed,
        })

    async def _stream_inline(
        self,
        audio: InlineReplyAudio,
        message: str,
        *,
        include_text: bool,
    ) -> None:
        # Decode before any byte is written so failures can still be reported.
        try:
            with timed("reply_transcode", session_id=self.session_id):
                pcm = await asyncio.to_thread(self._transcoder.transcode, audio.payload)
        except ReplyDecodeError as e:
            raise SessionError(ErrorKind.REPLY_DECODE_FAILED, str(e)) from e

        log_event({
            "event_type": "REPLY_TRANSCODED",
            "session_id": self.session_id,
            "media_type": audio.media_type,
            "input_bytes": len(audio.payload),
            "output_bytes": len(pcm),
            "audio_seconds": bytes_to_seconds(len(pcm)),
        })

        if include_text:
            await self._send_text_frame(message)

        step = self._settings.stream_chunk_bytes
        for offset in range(0, len(pcm), step):
            await self._send_audio(pcm[offset:offset + step])

    async def _stream_remote(
        self,
        audio: RemoteReplyAudio,
        message: str,
        *,
        include_text: bool,
    ) -> None:
        try:
            async with self._fetcher.stream(audio.url) as chunks:
                if include_text:
                    await self._send_text_frame(message)
                try:
                    async for chunk in chunks:
                        await self._send_audio(chunk)
                except httpx.HTTPError as e:
                    raise SessionError(
                        ErrorKind.REPLY_FETCH_FAILED, f"stream broke: {e}"
                    ) from e
        except ReplyFetchError as e:
            raise SessionError(ErrorKind.REPLY_FETCH_FAILED, str(e)) from e

    # -------------------------
    # Device writes
    # -------------------------

    async def _send_text_frame(self, message: str) -> None:
        frame = json.dumps({"type": "text", "message": message}) + "\n"
        await self._write(frame.encode("utf-8"))
        self._reply_started = True
        # Keeps the text line and the first audio bytes in separate segments.
        await asyncio.sleep(self._settings.text_frame_delay_s)

    async def _send_audio(self, chunk: bytes) -> None:
        if not chunk:
            return
        self._reply_started = True
        await self._write(chunk)
        self._bytes_streamed += len(chunk)

    async def _write(self, data: bytes) -> None:
        try:
            self._writer.write(data)
            await self._writer.drain()
        except ConnectionError as e:
            raise SessionError(ErrorKind.TRANSPORT_ERROR, f"write failed: {e}") from e

    # -------------------------
    # Terminal handling
    # -------------------------

    async def _fail(self, error: SessionError) -> None:
        self.error_kind = error.kind
        self._transition(SessionState.ERROR, error_kind=error.kind.value)

        if error.kind is ErrorKind.TRANSPORT_ERROR:
            log_event({
                "event_type": "TRANSPORT_ERROR",
                "session_id": self.session_id,
                "detail": error.detail,
                "bytes_streamed": self._bytes_streamed,
            })
            return

        dropped = self._buffer.clear()
        log_event({
            "event_type": "SESSION_ERROR",
            "session_id": self.session_id,
            "error_kind": error.kind.value,
            "sub_kind": error.sub_kind,
            "detail": error.detail,
            "buffer_bytes_dropped": dropped,
        })

        message = error.client_message
        if message is None or self._reply_started:
            # The device is already reading reply audio; just close.
            return

        line = json.dumps({"error": message}) + "\n"
        try:
            await self._write(line.encode("utf-8"))
        except SessionError as e:
            log_event({
                "event_type": "TRANSPORT_ERROR",
                "session_id": self.session_id,
                "detail": e.detail,
            })

    async def _close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except ConnectionError as e:
            log_event({
                "event_type": "TRANSPORT_ERROR",
                "session_id": self.session_id,
                "detail": f"close: {e}",
            })


def _peer_name(writer: asyncio.StreamWriter) -> str | None:
    peer = writer.get_extra_info("peername")
    if not peer:
        return None
    return f"{peer[0]}:{peer[1]}"
