# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json
from dataclasses import replace
from types import SimpleNamespace
from typing import Any

import httpx
import numpy as np
import openai
import pytest
from fastapi.testclient import TestClient

from adapters.asr.base import Transcriber
from adapters.asr.http_asr import HttpAsrTranscriber
from adapters.asr.openai_asr import OpenAITranscriber
from adapters.dialogue.base import DialogueClient, DialogueReply
from adapters.dialogue.voiceflow import VoiceflowDialogueClient
from adapters.tts.remote_stream import RemoteAudioFetcher
from audio.capture_buffer import CaptureBuffer
from config import AppConfig
from server.app import build_dialogue_client, build_transcriber, create_app
from server.tcp import SessionDeps, SessionServer
from server.udp import IngressStats
from session.orchestrator import SessionOrchestrator, SessionSettings


LOUD_PCM = np.full(1000, 5000, dtype="<i2").tobytes()


class EchoTranscriber(Transcriber):
    name = "echo"

    async def transcribe(self, wav_bytes: bytes) -> str:
        return "hello"


class RemoteDialogue(DialogueClient):
    async def interact(self, transcript: str) -> DialogueReply:
        return DialogueReply(message=f"you said {transcript}", audio_uri="https://cdn/reply.mp3")


def make_deps(buffer: CaptureBuffer) -> SessionDeps:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda _r: httpx.Response(200, content=b"MP3DATA"))
    )
    return SessionDeps(
        capture_buffer=buffer,
        transcriber=EchoTranscriber(),
        dialogue=RemoteDialogue(),
        fetcher=RemoteAudioFetcher(client=client),
        settings=SessionSettings(
            include_text_default=False,
            playback_rate=1.0,
            reply_max_bytes=480000,
            asr_timeout_s=1.0,
            dialogue_timeout_s=1.0,
            config_wait_s=0.5,
            text_frame_delay_s=0.0,
        ),
    )


async def request_reply(port: int, config: bytes | None) -> bytes:
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    if config is not None:
        writer.write(config)
        await writer.drain()
    else:
        writer.write_eof()
    data = await reader.read()
    writer.close()
    await writer.wait_closed()
    return data


# ---------------------------------------------------------------------
# TCP session endpoint
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tcp_session_end_to_end():
    buffer = CaptureBuffer()
    buffer.append(LOUD_PCM)
    server = SessionServer(make_deps(buffer))
    listener = await server.start(host="127.0.0.1", port=0)
    port = listener.sockets[0].getsockname()[1]

    try:
        data = await request_reply(port, b'{"includeText": true}\n')
    finally:
        await server.close()

    line, _, audio = data.partition(b"\n")
    assert json.loads(line) == {"type": "text", "message": "you said hello"}
    assert audio == b"MP3DATA"
    assert len(buffer) == 0


@pytest.mark.asyncio
async def test_tcp_session_without_audio_reports_error():
    server = SessionServer(make_deps(CaptureBuffer()))
    listener = await server.start(host="127.0.0.1", port=0)
    port = listener.sockets[0].getsockname()[1]

    try:
        data = await request_reply(port, None)
    finally:
        await server.close()

    assert json.loads(data)["error"].startswith("No audio data received")
    assert server.active_sessions == 0


@pytest.mark.asyncio
async def test_tcp_collaborator_bug_is_reported_to_device():
    class BrokenDialogue(DialogueClient):
        async def interact(self, transcript: str) -> DialogueReply:
            raise KeyError("bug")

    buffer = CaptureBuffer()
    buffer.append(LOUD_PCM)
    server = SessionServer(replace(make_deps(buffer), dialogue=BrokenDialogue()))
    listener = await server.start(host="127.0.0.1", port=0)
    port = listener.sockets[0].getsockname()[1]

    try:
        data = await request_reply(port, None)
    finally:
        await server.close()

    assert data == b'{"error": "Error getting AI response"}\n'
    assert len(buffer) == 0
    assert server.active_sessions == 0


@pytest.mark.asyncio
async def test_tcp_unparseable_openai_response_is_a_transcription_error():
    class InvalidBodyTranscriptions:
        async def create(self, **_kwargs: Any) -> Any:
            request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
            raise openai.APIResponseValidationError(
                response=httpx.Response(200, request=request, content=b"<html>"),
                body="<html>",
            )

    class FakeOpenAI:
        audio = SimpleNamespace(transcriptions=InvalidBodyTranscriptions())

    buffer = CaptureBuffer()
    buffer.append(LOUD_PCM)
    transcriber = OpenAITranscriber(client=FakeOpenAI(), model="whisper-1")
    server = SessionServer(replace(make_deps(buffer), transcriber=transcriber))
    listener = await server.start(host="127.0.0.1", port=0)
    port = listener.sockets[0].getsockname()[1]

    try:
        data = await request_reply(port, None)
    finally:
        await server.close()

    assert data == b'{"error": "Error during transcription"}\n'
    assert len(buffer) == 0
    assert server.active_sessions == 0


@pytest.mark.asyncio
async def test_tcp_handler_contains_internal_failures(monkeypatch: pytest.MonkeyPatch):
    async def crash(_self: Any) -> None:
        raise RuntimeError("bug")

    monkeypatch.setattr(SessionOrchestrator, "run", crash)
    server = SessionServer(make_deps(CaptureBuffer()))
    listener = await server.start(host="127.0.0.1", port=0)
    port = listener.sockets[0].getsockname()[1]

    try:
        data = await request_reply(port, None)
    finally:
        await server.close()

    assert data == b""
    assert server.active_sessions == 0


# ---------------------------------------------------------------------
# Status surface
# ---------------------------------------------------------------------

def test_health_and_status():
    buffer = CaptureBuffer()
    buffer.append(b"\x00" * 3200)
    stats = IngressStats(datagrams=3, framed=2, raw=1, bytes=3284)
    app = create_app(capture_buffer=buffer, ingress_stats=stats, active_sessions=lambda: 2)

    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}
        status: dict[str, Any] = client.get("/status").json()

    assert status["capture_buffer"]["bytes"] == 3200
    assert status["capture_buffer"]["audio_seconds"] == 0.1
    assert status["ingress"]["datagrams"] == 3
    assert status["ingress"]["malformed_headers"] == 0
    assert status["active_sessions"] == 2


# ---------------------------------------------------------------------
# Collaborator factories
# ---------------------------------------------------------------------

def make_config(monkeypatch: pytest.MonkeyPatch, **env: str) -> AppConfig:
    for key in ("ASR_URL", "OPENAI_API_KEY", "DIALOGUE_API_KEY", "ASR_BACKEND"):
        monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return AppConfig.load_from_env()


@pytest.mark.asyncio
async def test_factories_build_selected_backends(monkeypatch: pytest.MonkeyPatch):
    async with httpx.AsyncClient() as client:
        http_cfg = make_config(monkeypatch, ASR_URL="http://asr:9000", DIALOGUE_API_KEY="k")
        assert isinstance(build_transcriber(http_cfg, client), HttpAsrTranscriber)
        assert isinstance(build_dialogue_client(http_cfg, client), VoiceflowDialogueClient)

        openai_cfg = make_config(monkeypatch, ASR_BACKEND="openai", OPENAI_API_KEY="sk-test")
        transcriber = build_transcriber(openai_cfg, client)
        assert isinstance(transcriber, OpenAITranscriber)
        await transcriber.aclose()


@pytest.mark.parametrize(
    "env",
    [
        {},
        {"ASR_BACKEND": "openai"},
        {"ASR_BACKEND": "carrier-pigeon"},
    ],
)
def test_transcriber_factory_fails_fast(monkeypatch: pytest.MonkeyPatch, env: dict[str, str]):
    config = make_config(monkeypatch, **env)

    with pytest.raises(RuntimeError):
        build_transcriber(config, httpx.AsyncClient())


def test_dialogue_factory_requires_api_key(monkeypatch: pytest.MonkeyPatch):
    config = make_config(monkeypatch)

    with pytest.raises(RuntimeError):
        build_dialogue_client(config, httpx.AsyncClient())
