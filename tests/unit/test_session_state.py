# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from session.errors import CLIENT_MESSAGES, ErrorKind, SessionError
from session.state import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    IllegalTransition,
    SessionState,
    check_transition,
)


HAPPY_PATH = [
    SessionState.AWAITING_CONFIG,
    SessionState.VALIDATING,
    SessionState.ENCODING,
    SessionState.TRANSCRIBING,
    SessionState.DIALOGUING,
    SessionState.STREAMING_REPLY,
    SessionState.CLOSED,
]


# ---------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------

def test_happy_path_is_allowed():
    for current, target in zip(HAPPY_PATH, HAPPY_PATH[1:]):
        check_transition(current, target)


@pytest.mark.parametrize("state", [s for s in SessionState if s not in TERMINAL_STATES])
def test_error_reachable_from_every_live_state(state: SessionState):
    check_transition(state, SessionState.ERROR)


@pytest.mark.parametrize("state", sorted(TERMINAL_STATES, key=lambda s: s.value))
def test_terminal_states_are_absorbing(state: SessionState):
    for target in SessionState:
        assert (state, target) not in ALLOWED_TRANSITIONS


def test_skipping_states_is_illegal():
    with pytest.raises(IllegalTransition):
        check_transition(SessionState.VALIDATING, SessionState.TRANSCRIBING)

    with pytest.raises(IllegalTransition):
        check_transition(SessionState.DIALOGUING, SessionState.VALIDATING)


# ---------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------

def test_every_reported_kind_has_a_message():
    for kind in ErrorKind:
        if kind is ErrorKind.TRANSPORT_ERROR:
            assert kind not in CLIENT_MESSAGES
        else:
            assert CLIENT_MESSAGES[kind]


def test_session_error_carries_client_message():
    err = SessionError(ErrorKind.NO_AUDIO, "empty", sub_kind=None)

    assert err.client_message is not None
    assert err.client_message.startswith("No audio data received")
    assert "empty" in str(err)


def test_transport_error_has_no_client_message():
    assert SessionError(ErrorKind.TRANSPORT_ERROR).client_message is None
