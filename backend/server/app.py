"""
FastAPI status app and collaborator factories.

Responsibilities:
- Build the HTTP status surface (/health, /status)
- Build the transcription and dialogue collaborators selected by config,
  failing fast on missing credentials
"""

from __future__ import annotations

from typing import Callable

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from adapters.asr.base import Transcriber
from adapters.asr.http_asr import HttpAsrTranscriber
from adapters.asr.openai_asr import OpenAITranscriber
from adapters.asr.whisper_adapter import LocalWhisperTranscriber, WhisperEngine
from adapters.dialogue.voiceflow import VoiceflowDialogueClient
from audio.capture_buffer import CaptureBuffer
from config import AppConfig
from server.udp import IngressStats


def create_app(
    *,
    capture_buffer: CaptureBuffer,
    ingress_stats: IngressStats,
    active_sessions: Callable[[], int],
) -> FastAPI:
    """
    Create the status application.

    The app only reads shared state; it never mutates the capture buffer.
    """
    app = FastAPI(title="Voice Bridge Status")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/status")
    async def status() -> dict[str, object]: # pyright: ignore[reportUnusedFunction]
        snap = capture_buffer.snapshot()
        return {
            "capture_buffer": {
                "bytes": snap.num_bytes,
                "audio_seconds": snap.audio_seconds,
                "idle_seconds": snap.idle_seconds,
            },
            "ingress": ingress_stats.as_dict(),
            "active_sessions": active_sessions(),
        }

    return app


# ------------------------------------------------------------------
# Collaborator factories
# ------------------------------------------------------------------

def build_openai_client(config: AppConfig) -> AsyncOpenAI:
    """OpenAI client without SDK-level retries; the session owns timeouts."""
    if not config.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable not set")
    return AsyncOpenAI(api_key=config.openai_api_key, max_retries=0)


def build_transcriber(config: AppConfig, http_client: httpx.AsyncClient) -> Transcriber:
    """Build the transcription backend selected by ASR_BACKEND."""
    backend = config.asr_backend

    if backend == "http":
        if not config.asr_url:
            raise RuntimeError("ASR_URL environment variable not set")
        return HttpAsrTranscriber(
            client=http_client,
            base_url=config.asr_url,
            language=config.asr_language,
            initial_prompt=config.asr_initial_prompt,
        )

    if backend == "openai":
        return OpenAITranscriber(
            client=build_openai_client(config),
            model=config.asr_model,
            language=config.asr_language,
            prompt=config.asr_initial_prompt,
        )

    if backend == "local":
        engine = WhisperEngine(
            model=config.local_whisper_model,
            device=config.local_whisper_device,
            compute_type=config.local_whisper_compute_type,
            language=config.asr_language,
            initial_prompt=config.asr_initial_prompt,
        )
        return LocalWhisperTranscriber(engine=engine)

    raise RuntimeError(f"Unknown ASR_BACKEND: {backend}")


def build_dialogue_client(
    config: AppConfig,
    http_client: httpx.AsyncClient,
) -> VoiceflowDialogueClient:
    if not config.dialogue_api_key:
        raise RuntimeError("DIALOGUE_API_KEY environment variable not set")
    return VoiceflowDialogueClient(
        client=http_client,
        base_url=config.dialogue_url,
        api_key=config.dialogue_api_key,
        user_id=config.dialogue_user_id,
    )
