"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No session logic
- No protocol constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    ASR_TIMEOUT_S,
    CONFIG_WAIT_TIMEOUT_S,
    DIALOGUE_TIMEOUT_S,
    INCLUDE_TEXT_DEFAULT,
    PLAYBACK_RATE_DEFAULT,
    REPLY_FETCH_TIMEOUT_S,
    REPLY_MAX_BYTES_DEFAULT,
    STATUS_PORT_DEFAULT,
    TCP_PORT_DEFAULT,
    UDP_PORT_DEFAULT,
)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the listeners and the collaborator factories.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    udp_host: str
    udp_port: int
    tcp_host: str
    tcp_port: int
    status_port: int  # 0 disables the HTTP status surface

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    asr_backend: str
    asr_url: str | None
    asr_language: str | None
    asr_initial_prompt: str | None
    asr_model: str
    openai_api_key: str | None

    local_whisper_model: str
    local_whisper_device: str | None
    local_whisper_compute_type: str | None

    # ------------------------------------------------------------------
    # Dialogue
    # ------------------------------------------------------------------

    dialogue_url: str
    dialogue_api_key: str | None
    dialogue_user_id: str

    # ------------------------------------------------------------------
    # Session behavior
    # ------------------------------------------------------------------

    include_text_default: bool
    playback_rate: float
    reply_max_bytes: int
    config_wait_s: float

    # ------------------------------------------------------------------
    # External call timeouts
    # ------------------------------------------------------------------

    asr_timeout_s: float
    dialogue_timeout_s: float
    reply_fetch_timeout_s: float

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable cannot be parsed.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),

            udp_host=os.environ.get("UDP_HOST", "0.0.0.0"),
            udp_port=int(os.environ.get("UDP_PORT", str(UDP_PORT_DEFAULT))),
            tcp_host=os.environ.get("TCP_HOST", "0.0.0.0"),
            tcp_port=int(os.environ.get("TCP_PORT", str(TCP_PORT_DEFAULT))),
            status_port=int(os.environ.get("STATUS_PORT", str(STATUS_PORT_DEFAULT))),

            asr_backend=os.environ.get("ASR_BACKEND", "http").lower(),
            asr_url=os.environ.get("ASR_URL"),
            asr_language=os.environ.get("ASR_LANGUAGE") or None,
            asr_initial_prompt=os.environ.get("ASR_INITIAL_PROMPT") or None,
            asr_model=os.environ.get("ASR_MODEL", "whisper-1"),
            openai_api_key=os.environ.get("OPENAI_API_KEY"),

            local_whisper_model=os.environ.get("LOCAL_WHISPER_MODEL", "base"),
            local_whisper_device=os.environ.get("LOCAL_WHISPER_DEVICE") or None,
            local_whisper_compute_type=os.environ.get("LOCAL_WHISPER_COMPUTE_TYPE") or None,

            dialogue_url=os.environ.get(
                "DIALOGUE_URL", "https://general-runtime.voiceflow.com"
            ),
            dialogue_api_key=os.environ.get("DIALOGUE_API_KEY"),
            dialogue_user_id=os.environ.get("DIALOGUE_USER_ID", "device"),

            include_text_default=os.environ.get(
                "INCLUDE_TEXT_DEFAULT", "1" if INCLUDE_TEXT_DEFAULT else "0"
            ) == "1",
            playback_rate=float(os.environ.get("PLAYBACK_RATE", str(PLAYBACK_RATE_DEFAULT))),
            reply_max_bytes=int(os.environ.get("REPLY_MAX_BYTES", str(REPLY_MAX_BYTES_DEFAULT))),
            config_wait_s=float(os.environ.get("CONFIG_WAIT_S", str(CONFIG_WAIT_TIMEOUT_S))),

            asr_timeout_s=float(os.environ.get("ASR_TIMEOUT_S", str(ASR_TIMEOUT_S))),
            dialogue_timeout_s=float(os.environ.get("DIALOGUE_TIMEOUT_S", str(DIALOGUE_TIMEOUT_S))),
            reply_fetch_timeout_s=float(
                os.environ.get("REPLY_FETCH_TIMEOUT_S", str(REPLY_FETCH_TIMEOUT_S))
            ),
        )
