"""
Reply audio representation.

A dialogue reply references its audio in one of two ways, resolved once
per session into a tagged variant:

- InlineReplyAudio: compressed bytes carried in a data URI
  (data:audio/mpeg;base64,...)
- RemoteReplyAudio: an http(s) URL to stream through unchanged
"""

from __future__ import annotations

import base64
import binascii
import urllib.parse
from dataclasses import dataclass
from typing import Union

from adapters.tts.remote_stream import ReplyFetchError
from audio.reply_transcoder import ReplyDecodeError


@dataclass(frozen=True)
class InlineReplyAudio:
    """Compressed reply audio carried inline."""
    payload: bytes
    media_type: str


@dataclass(frozen=True)
class RemoteReplyAudio:
    """Reply audio to be fetched from a URL."""
    url: str


ReplyAudio = Union[InlineReplyAudio, RemoteReplyAudio]


def _decode_data_uri(uri: str) -> InlineReplyAudio:
    header, sep, data = uri[len("data:"):].partition(",")
    if not sep:
        raise ReplyDecodeError("data URI has no payload separator")

    params = header.split(";")
    media_type = params[0] or "application/octet-stream"

    if "base64" in params[1:]:
        try:
            payload = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ReplyDecodeError(f"invalid base64 audio payload: {e}") from e
    else:
        payload = urllib.parse.unquote_to_bytes(data)

    return InlineReplyAudio(payload=payload, media_type=media_type)


def resolve_reply_audio(audio_uri: str) -> ReplyAudio:
    """
    Classify a dialogue reply's audio reference.

    Raises:
        ReplyDecodeError for an undecodable inline payload.
        ReplyFetchError for an empty or non-http(s) reference.
    """
    uri = audio_uri.strip()
    if uri.startswith("data:"):
        return _decode_data_uri(uri)

    scheme = urllib.parse.urlsplit(uri).scheme.lower()
    if scheme in ("http", "https"):
        return RemoteReplyAudio(url=uri)

    if not uri:
        raise ReplyFetchError("dialogue reply has no audio reference")
    raise ReplyFetchError(f"unsupported audio reference scheme: {scheme or '<none>'}")
