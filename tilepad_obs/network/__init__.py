"""OBS control connection (transport/protocol/client)."""

from tilepad_obs.network.errors import (
    FailureKind,
    ObsAuthError,
    ObsConnectError,
    ObsConnectionClosed,
    ObsError,
    ObsProtocolError,
    ObsRequestError,
    ObsSendError,
    ObsTimeoutError,
    classify_failure,
)
from tilepad_obs.network.client import ObsClient, TransportFactory
from tilepad_obs.network.transport.base import ObsTransport
from tilepad_obs.network.transport.dummy import DummyTransport
from tilepad_obs.network.transport.websocket import WebSocketTransport

__all__ = [
    "ObsClient",
    "TransportFactory",
    "ObsTransport",
    "DummyTransport",
    "WebSocketTransport",
    "FailureKind",
    "classify_failure",
    "ObsError",
    "ObsProtocolError",
    "ObsAuthError",
    "ObsConnectError",
    "ObsConnectionClosed",
    "ObsRequestError",
    "ObsSendError",
    "ObsTimeoutError",
]
