"""
OpenAI transcription backend.

Uses the audio transcription endpoint of an OpenAI-compatible API through
the shared AsyncOpenAI client (see server.app.build_openai_client).
"""
from __future__ import annotations

from typing import Any

import openai

from adapters.asr.base import Transcriber, TranscriptionError, TranscriptionErrorKind


class OpenAITranscriber(Transcriber):
    """
    Cloud transcription via `client.audio.transcriptions.create`.

    Adapter does NOT:
    - Retry (the SDK client is built with max_retries=0)
    - Substitute text for empty transcripts
    """

    name = "openai"

    def __init__(
        self,
        *,
        client: Any,  # Type: openai.AsyncOpenAI
        model: str,
        language: str | None = None,
        prompt: str | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._language = language
        self._prompt = prompt

    async def transcribe(self, wav_bytes: bytes) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "file": ("audio.wav", wav_bytes, "audio/wav"),
        }
        if self._language:
            kwargs["language"] = self._language
        if self._prompt:
            kwargs["prompt"] = self._prompt

        try:
            result = await self._client.audio.transcriptions.create(**kwargs)
        except openai.APIConnectionError as e:
            # Includes APITimeoutError
            raise TranscriptionError(
                TranscriptionErrorKind.NETWORK, f"{type(e).__name__}: {e}"
            ) from e
        except openai.APIStatusError as e:
            raise TranscriptionError(
                TranscriptionErrorKind.SERVER, f"status {e.status_code}: {e.message}"
            ) from e
        except openai.APIError as e:
            # Includes APIResponseValidationError (unparseable body)
            raise TranscriptionError(
                TranscriptionErrorKind.MALFORMED, f"{type(e).__name__}: {e}"
            ) from e

        text = getattr(result, "text", None)
        if not isinstance(text, str):
            raise TranscriptionError(
                TranscriptionErrorKind.MALFORMED, "transcription result has no text"
            )
        return text.strip()

    async def aclose(self) -> None:
        await self._client.close()
