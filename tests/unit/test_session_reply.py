# pylint: disable=missing-module-docstring,missing-function-docstring

import base64

import pytest

from adapters.tts.remote_stream import ReplyFetchError
from audio.reply_transcoder import ReplyDecodeError
from session.reply import InlineReplyAudio, RemoteReplyAudio, resolve_reply_audio


def test_base64_data_uri_is_inline():
    payload = b"\xff\xfb\x90\x00fake-mp3"
    uri = "data:audio/mpeg;base64," + base64.b64encode(payload).decode()

    audio = resolve_reply_audio(uri)

    assert audio == InlineReplyAudio(payload=payload, media_type="audio/mpeg")


def test_percent_encoded_data_uri_is_inline():
    audio = resolve_reply_audio("data:audio/wav,%00%01ab")

    assert isinstance(audio, InlineReplyAudio)
    assert audio.payload == b"\x00\x01ab"


@pytest.mark.parametrize("url", ["https://cdn.example.com/a.mp3", "http://h/x?y=1"])
def test_http_url_is_remote(url: str):
    assert resolve_reply_audio(url) == RemoteReplyAudio(url=url)


def test_bad_base64_is_a_decode_error():
    with pytest.raises(ReplyDecodeError):
        resolve_reply_audio("data:audio/mpeg;base64,!!!not-base64!!!")


def test_data_uri_without_comma_is_a_decode_error():
    with pytest.raises(ReplyDecodeError):
        resolve_reply_audio("data:audio/mpeg;base64")


@pytest.mark.parametrize("uri", ["", "   ", "ftp://host/a.mp3", "just-text"])
def test_unsupported_reference_is_a_fetch_error(uri: str):
    with pytest.raises(ReplyFetchError):
        resolve_reply_audio(uri)
