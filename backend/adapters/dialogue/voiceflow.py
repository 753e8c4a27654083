"""Voiceflow dialogue adapter"""
from __future__ import annotations

from typing import Any

import httpx

from adapters.dialogue.base import DialogueClient, DialogueError, DialogueReply


class VoiceflowDialogueClient(DialogueClient):
    """
    Dialogue turns through the Voiceflow Dialog Manager runtime API.

    One request per turn:
        POST {base_url}/state/user/{user_id}/interact

    The transcript is sent as a "question" event; TTS is requested so the
    reply trace carries an audio source alongside the message.

    Adapter does NOT:
    - Retry
    - Decode or fetch reply audio
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        user_id: str,
        timeout_s: float | None = None,
    ) -> None:
        self._client = client
        self._url = f"{base_url.rstrip('/')}/state/user/{user_id}/interact"
        self._api_key = api_key
        self._timeout_s = timeout_s

    @staticmethod
    def build_request_body(transcript: str) -> dict[str, Any]:
        """Request body for one question turn."""
        return {
            "action": {
                "type": "event",
                "payload": {
                    "event": {
                        "name": "question",
                        "question": transcript,
                    },
                },
            },
            "config": {
                "tts": True,
                "stripSSML": True,
                "stopAll": False,
                "excludeTypes": ["block", "debug", "flow"],
            },
        }

    async def interact(self, transcript: str) -> DialogueReply:
        kwargs: dict[str, Any] = {
            "json": self.build_request_body(transcript),
            "headers": {
                "Authorization": self._api_key,
                "Content-Type": "application/json",
            },
        }
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        try:
            response = await self._client.post(self._url, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise DialogueError(f"dialogue backend status {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise DialogueError(f"dialogue request failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise DialogueError("dialogue response is not JSON") from e

        return extract_reply(data)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _audio_src(payload: dict[str, Any]) -> str:
    audio = payload.get("audio")
    if isinstance(audio, dict) and isinstance(audio.get("src"), str):
        return audio["src"]
    src = payload.get("src")
    return src if isinstance(src, str) else ""


def extract_reply(traces: Any) -> DialogueReply:
    """
    Pick the reply out of a list of runtime traces.

    Prefers the first trace whose payload carries audio; falls back to the
    first payload with a message.

    Raises:
        DialogueError if no trace carries a reply payload.
    """
    if not isinstance(traces, list):
        raise DialogueError("unexpected dialogue response shape")

    payloads = [
        trace["payload"]
        for trace in traces
        if isinstance(trace, dict) and isinstance(trace.get("payload"), dict)
    ]

    for payload in payloads:
        src = _audio_src(payload)
        if src:
            return DialogueReply(message=str(payload.get("message") or ""), audio_uri=src)

    for payload in payloads:
        if payload.get("message"):
            return DialogueReply(message=str(payload["message"]), audio_uri="")

    raise DialogueError("No payload in dialogue response")
