"""
HTTP transcription backend (whisper-asr-webservice compatible).

Request:
    POST {base_url}/asr?encode=false&vad_filter=true&task=transcribe&output=json
         [&language=..][&initial_prompt=..]
    multipart/form-data, field "audio_file" = audio.wav (audio/wav)

Response:
    {"text": "...", ...}

This adapter is deliberately "dumb": one request per utterance, no retries,
errors classified into TranscriptionErrorKind.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.asr.base import Transcriber, TranscriptionError, TranscriptionErrorKind


class HttpAsrTranscriber(Transcriber):
    """Transcribes WAV containers through a self-hosted ASR web service."""

    name = "http"

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        language: str | None = None,
        initial_prompt: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._client = client
        self._url = base_url.rstrip("/") + "/asr"
        self._language = language
        self._initial_prompt = initial_prompt
        self._timeout_s = timeout_s

    def _params(self) -> dict[str, str]:
        params: dict[str, str] = {
            "encode": "false",
            "vad_filter": "true",
            "task": "transcribe",
            "output": "json",
        }
        if self._language:
            params["language"] = self._language
        if self._initial_prompt:
            params["initial_prompt"] = self._initial_prompt
        return params

    async def transcribe(self, wav_bytes: bytes) -> str:
        files = {"audio_file": ("audio.wav", wav_bytes, "audio/wav")}
        kwargs: dict[str, Any] = {
            "params": self._params(),
            "files": files,
            "headers": {"accept": "application/json"},
        }
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        try:
            response = await self._client.post(self._url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TranscriptionError(
                TranscriptionErrorKind.SERVER,
                f"status {e.response.status_code}: {e.response.text[:200]}",
            ) from e
        except httpx.RequestError as e:
            raise TranscriptionError(
                TranscriptionErrorKind.NETWORK,
                f"{type(e).__name__}: {e}",
            ) from e

        return _extract_text(response)


def _extract_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError as e:
        raise TranscriptionError(
            TranscriptionErrorKind.MALFORMED, "response body is not JSON"
        ) from e

    if not isinstance(data, dict):
        raise TranscriptionError(
            TranscriptionErrorKind.MALFORMED, "no response data received"
        )

    text = data.get("text")
    if not isinstance(text, str):
        raise TranscriptionError(
            TranscriptionErrorKind.MALFORMED, "response has no 'text' field"
        )
    return text.strip()
