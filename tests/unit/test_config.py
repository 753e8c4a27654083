# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import AppConfig
from constants import (
    CONFIG_WAIT_TIMEOUT_S,
    REPLY_MAX_BYTES_DEFAULT,
    TCP_PORT_DEFAULT,
    UDP_PORT_DEFAULT,
)

ENV_KEYS = (
    "ENV", "UDP_HOST", "UDP_PORT", "TCP_HOST", "TCP_PORT", "STATUS_PORT",
    "ASR_BACKEND", "ASR_URL", "ASR_LANGUAGE", "INCLUDE_TEXT_DEFAULT",
    "PLAYBACK_RATE", "REPLY_MAX_BYTES", "CONFIG_WAIT_S", "DIALOGUE_USER_ID",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    config = AppConfig.load_from_env()

    assert config.udp_port == UDP_PORT_DEFAULT == 6980
    assert config.tcp_port == TCP_PORT_DEFAULT == 12345
    assert config.asr_backend == "http"
    assert config.asr_language is None
    assert config.include_text_default is False
    assert config.playback_rate == 1.0
    assert config.reply_max_bytes == REPLY_MAX_BYTES_DEFAULT
    assert config.config_wait_s == CONFIG_WAIT_TIMEOUT_S
    assert config.dialogue_user_id == "device"


def test_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("UDP_PORT", "7000")
    monkeypatch.setenv("STATUS_PORT", "0")
    monkeypatch.setenv("ASR_BACKEND", "OpenAI")
    monkeypatch.setenv("ASR_LANGUAGE", "")
    monkeypatch.setenv("INCLUDE_TEXT_DEFAULT", "1")
    monkeypatch.setenv("PLAYBACK_RATE", "1.15")

    config = AppConfig.load_from_env()

    assert config.udp_port == 7000
    assert config.status_port == 0
    assert config.asr_backend == "openai"
    assert config.asr_language is None
    assert config.include_text_default is True
    assert config.playback_rate == 1.15


def test_bad_number_raises(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TCP_PORT", "not-a-port")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()


def test_config_is_immutable():
    config = AppConfig.load_from_env()

    with pytest.raises(AttributeError):
        config.udp_port = 1  # type: ignore[misc]
