"""Lifecycle states for the OBS client session."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ClientState(enum.Enum):
    """Connection lifecycle as published to the inspector."""

    INITIAL = "INITIAL"
    NOT_CONNECTED = "NOT_CONNECTED"
    CONNECTING = "CONNECTING"
    RETRY_CONNECTING = "RETRY_CONNECTING"
    CONNECTED = "CONNECTED"
    CONNECT_ERROR = "CONNECT_ERROR"
    INVALID_AUTH = "INVALID_AUTH"


_ALLOWED: dict[ClientState, frozenset[ClientState]] = {
    ClientState.INITIAL: frozenset({ClientState.NOT_CONNECTED, ClientState.CONNECTING}),
    ClientState.NOT_CONNECTED: frozenset(
        {ClientState.NOT_CONNECTED, ClientState.CONNECTING, ClientState.RETRY_CONNECTING}
    ),
    ClientState.CONNECTING: frozenset(
        {
            ClientState.CONNECTED,
            ClientState.CONNECT_ERROR,
            ClientState.INVALID_AUTH,
            ClientState.NOT_CONNECTED,
            ClientState.RETRY_CONNECTING,
        }
    ),
    ClientState.RETRY_CONNECTING: frozenset(
        {
            ClientState.RETRY_CONNECTING,
            ClientState.CONNECTED,
            ClientState.INVALID_AUTH,
            ClientState.CONNECTING,
            ClientState.NOT_CONNECTED,
        }
    ),
    ClientState.CONNECTED: frozenset(
        {ClientState.NOT_CONNECTED, ClientState.INVALID_AUTH, ClientState.CONNECTING}
    ),
    ClientState.CONNECT_ERROR: frozenset(
        {ClientState.CONNECTING, ClientState.RETRY_CONNECTING, ClientState.NOT_CONNECTED}
    ),
    ClientState.INVALID_AUTH: frozenset({ClientState.CONNECTING, ClientState.NOT_CONNECTED}),
}


@dataclass
class StateTracker:
    """Holds the current lifecycle state and validates transitions."""

    state: ClientState = ClientState.INITIAL
    previous: Optional[ClientState] = None

    def transition(self, next_state: ClientState) -> None:
        """Move into a new state, validating allowed transitions."""

        if not self.is_valid_transition(self.state, next_state):
            raise ValueError(f"Invalid transition {self.state.value} → {next_state.value}")
        self.previous = self.state
        self.state = next_state

    @staticmethod
    def is_valid_transition(current: ClientState, nxt: ClientState) -> bool:
        return nxt in _ALLOWED.get(current, frozenset())
