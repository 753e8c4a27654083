# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false
"""
Local Whisper transcription backend (faster-whisper).

WhisperEngine owns the loaded model and is synchronous: float32 mono
16kHz audio in, text and segment timestamps out.

LocalWhisperTranscriber adapts it to the Transcriber contract:
- Unwraps the WAV container
- Runs the blocking engine in a worker thread so the event loop (and the
  UDP listener on it) keeps running
- Maps engine failures to TranscriptionError

faster-whisper is not a core dependency: install the `local` extra.
"""

from __future__ import annotations

import asyncio
import wave
from dataclasses import dataclass
from typing import Any

import numpy as np

from adapters.asr.base import Transcriber, TranscriptionError, TranscriptionErrorKind
from audio.pcm import pcm16le_to_float32
from audio.wav import decode_wav
from constants import CAPTURE_SAMPLE_RATE_HZ


@dataclass(frozen=True)
class WhisperSegment:
    """Recognized speech span; times in ms from the utterance start."""
    start_ms: int
    end_ms: int
    text: str


@dataclass(frozen=True)
class WhisperResult:
    text: str
    segments: tuple[WhisperSegment, ...] = ()


class WhisperBackendError(RuntimeError):
    """Raised when the model cannot be loaded or a transcription pass fails."""


class WhisperEngine:
    """
    Loaded faster-whisper model.

    Loading happens in the constructor, at startup, so a missing package
    or a bad model name fails before any device connects.
    """

    def __init__(
        self,
        *,
        model: str = "base",
        device: str | None = None,
        compute_type: str | None = None,
        language: str | None = None,
        initial_prompt: str | None = None,
        beam_size: int = 1,
    ) -> None:
        try:
            from faster_whisper import WhisperModel  # pylint: disable=import-outside-toplevel
        except ImportError as e:
            raise WhisperBackendError(
                "ASR_BACKEND=local needs faster-whisper (pip install 'voice-bridge[local]')"
            ) from e

        options: dict[str, Any] = {}
        if device:
            options["device"] = device
        if compute_type:
            options["compute_type"] = compute_type

        self._model = WhisperModel(model, **options)
        self._language = language
        self._initial_prompt = initial_prompt
        self._beam_size = beam_size

    def transcribe(self, audio: np.ndarray, *, temperature: float = 0.0) -> WhisperResult:
        """Transcribe one utterance. Empty audio never reaches the model."""
        if not audio.size:
            return WhisperResult(text="")

        try:
            segments, _info = self._model.transcribe(
                audio,
                language=self._language,
                initial_prompt=self._initial_prompt,
                beam_size=self._beam_size,
                temperature=temperature,
                vad_filter=True,
            )
            # The segment generator is lazy; decoding happens while iterating.
            spans = tuple(
                WhisperSegment(
                    start_ms=int(seg.start * 1000),
                    end_ms=int(seg.end * 1000),
                    text=seg.text.strip(),
                )
                for seg in segments
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise WhisperBackendError(f"local transcription failed: {e!r}") from e

        text = " ".join(span.text for span in spans if span.text)
        return WhisperResult(text=text, segments=spans)


class LocalWhisperTranscriber(Transcriber):
    """In-process transcription with a loaded WhisperEngine."""

    name = "local"

    def __init__(self, *, engine: Any) -> None:  # Type: WhisperEngine
        self._engine = engine

    async def transcribe(self, wav_bytes: bytes) -> str:
        try:
            decoded = decode_wav(wav_bytes)
        except (wave.Error, EOFError) as e:
            raise TranscriptionError(
                TranscriptionErrorKind.MALFORMED, f"invalid WAV container: {e}"
            ) from e

        if decoded.sample_rate_hz != CAPTURE_SAMPLE_RATE_HZ or decoded.channels != 1:
            raise TranscriptionError(
                TranscriptionErrorKind.MALFORMED,
                f"expected mono {CAPTURE_SAMPLE_RATE_HZ}Hz, got "
                f"{decoded.channels}ch {decoded.sample_rate_hz}Hz",
            )

        audio = pcm16le_to_float32(decoded.pcm_bytes)
        try:
            result = await asyncio.to_thread(self._engine.transcribe, audio)
        except WhisperBackendError as e:
            raise TranscriptionError(TranscriptionErrorKind.SERVER, str(e)) from e

        return result.text
