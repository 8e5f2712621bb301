"""Session state for the microphone/generation state machine."""

from __future__ import annotations

from enum import Enum, auto


class SessionState(Enum):
    """States of one conversation session."""

    IDLE = auto()  # Mic off, no request in flight
    LISTENING = auto()  # Mic on, buffering audio
    GENERATING = auto()  # Mic off, one generation request in flight


def determine_state(mic_active: bool, has_pending_request: bool) -> SessionState:
    """Derive the session state from its flags.

    An active microphone takes precedence: a typed message sent while
    recording leaves the session LISTENING with a request in flight.
    """
    if mic_active:
        return SessionState.LISTENING
    if has_pending_request:
        return SessionState.GENERATING
    return SessionState.IDLE
