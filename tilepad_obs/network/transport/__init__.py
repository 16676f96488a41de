"""Transport implementations for the OBS control connection."""

from .base import ObsFrame, ObsTransport, decode_frame, encode_frame
from .dummy import DummyTransport
from .websocket import WebSocketTransport

__all__ = ["ObsFrame", "ObsTransport", "decode_frame", "encode_frame", "DummyTransport", "WebSocketTransport"]
