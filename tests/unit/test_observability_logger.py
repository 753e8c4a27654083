# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger, metrics


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is, plus a ts_ms stamp
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "event_type": "TEST",
        "session_id": "sess_1",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1
    assert "\n" not in captured[0]

    decoded = json.loads(captured[0])
    assert isinstance(decoded.pop("ts_ms"), int)
    assert decoded == payload


def test_caller_timestamp_wins(captured: list[str]) -> None:
    logger.log_event({"event_type": "TEST", "ts_ms": 5})

    assert json.loads(captured[0])["ts_ms"] == 5


def test_unserializable_event_degrades(captured: list[str]) -> None:
    logger.log_event({"event_type": "TEST", "bad": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert "TEST" in decoded["original_event_repr"]


# ---------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------

def test_timed_emits_one_metric(captured: list[str]) -> None:
    with metrics.timed("transcription_latency", session_id="sess_1", details={"backend": "http"}):
        pass

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "METRIC_TIMER"
    assert decoded["metric"] == "transcription_latency"
    assert decoded["outcome"] == "ok"
    assert decoded["value_ms"] >= 0
    assert decoded["details"] == {"backend": "http"}


def test_timed_records_errors_and_reraises(captured: list[str]) -> None:
    with pytest.raises(ValueError):
        with metrics.timed("dialogue_latency"):
            raise ValueError("boom")

    assert len(captured) == 1
    assert json.loads(captured[0])["outcome"] == "error"
