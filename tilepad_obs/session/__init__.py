"""OBS session lifecycle (state machine, command executor, retry loop)."""

from tilepad_obs.session.manager import Connector, ObsSession, StateObserver, make_connector
from tilepad_obs.session.state import ClientState, StateTracker

__all__ = [
    "ClientState",
    "StateTracker",
    "ObsSession",
    "StateObserver",
    "Connector",
    "make_connector",
]
