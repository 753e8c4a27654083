# pylint: disable=missing-module-docstring,missing-function-docstring

import numpy as np

from audio.conditioning import condition_pcm


def pcm(*samples: int) -> bytes:
    return np.array(samples, dtype="<i2").tobytes()


def samples(data: bytes) -> list[int]:
    return np.frombuffer(data, dtype="<i2").tolist()


# ---------------------------------------------------------------------
# Per-sample rule
# ---------------------------------------------------------------------

def test_samples_below_threshold_are_gated():
    out = condition_pcm(pcm(0, 1, -1, 499, -499))

    assert samples(out) == [0, 0, 0, 0, 0]


def test_samples_at_threshold_are_amplified():
    out = condition_pcm(pcm(500, -500, 1000))

    assert samples(out) == [2500, -2500, 5000]


def test_amplified_samples_are_clamped():
    out = condition_pcm(pcm(7000, -7000, 32767, -32768))

    assert samples(out) == [32767, -32768, 32767, -32768]


def test_every_sample_value_follows_rule():
    values = np.arange(-32768, 32768, 7, dtype=np.int32)

    out = np.frombuffer(condition_pcm(values.astype("<i2").tobytes()), dtype="<i2")

    expected = np.where(
        np.abs(values) < 500, 0, np.clip(np.round(values * 5.0), -32768, 32767)
    )
    assert out.tolist() == expected.tolist()


# ---------------------------------------------------------------------
# Statelessness
# ---------------------------------------------------------------------

def test_conditioning_is_chunk_independent():
    rng = np.random.default_rng(7)
    data = rng.integers(-32768, 32767, size=1000, dtype=np.int16).astype("<i2").tobytes()

    for split in (0, 2, 500, 1998, 2000):
        left, right = data[:split], data[split:]
        assert condition_pcm(data) == condition_pcm(left) + condition_pcm(right)


def test_output_length_matches_input():
    data = pcm(600, 100) + b"\x07"

    out = condition_pcm(data)

    assert len(out) == len(data)
    assert out[-1:] == b"\x07"


def test_empty_input():
    assert condition_pcm(b"") == b""
