# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from session.session_config import SessionConfig


@pytest.mark.parametrize(
    "raw, expected",
    [
        (b'{"includeText": true}', True),
        (b'{"includeText": false}\n', False),
        (b'{"includeText": true, "other": 1}', True),
    ],
)
def test_include_text_is_read(raw: bytes, expected: bool):
    config = SessionConfig.parse(raw)

    assert config is not None
    assert config.include_text is expected


@pytest.mark.parametrize(
    "raw",
    [b"", b"   ", b"hello", b"[1, 2]", b'"text"', b"42", b"\xff\xfe", b'{"includeText": '],
)
def test_non_object_means_no_config(raw: bytes):
    assert SessionConfig.parse(raw) is None


@pytest.mark.parametrize("value", [b'"yes"', b"1", b"null", b"{}"])
def test_non_boolean_flag_is_absent(value: bytes):
    config = SessionConfig.parse(b'{"includeText": ' + value + b"}")

    assert config is not None
    assert config.include_text is None


def test_resolve_falls_back_to_default():
    assert SessionConfig().resolve_include_text(True) is True
    assert SessionConfig(include_text=False).resolve_include_text(True) is False
    assert SessionConfig(include_text=True).resolve_include_text(False) is True
