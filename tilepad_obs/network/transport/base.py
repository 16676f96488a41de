"""Transport abstractions for the OBS control connection.

Transports move whole obs-websocket frames: JSON objects carrying an integer
``op`` and a ``d`` payload. Decoding and shape checks live here so every
transport rejects the same malformed input.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, TypedDict, Union

from tilepad_obs.network.errors import ObsProtocolError


class ObsFrame(TypedDict):
    op: int
    d: Dict[str, Any]


def encode_frame(frame: ObsFrame) -> str:
    return json.dumps(frame)


def decode_frame(raw: Union[str, bytes]) -> ObsFrame:
    """Parse one text/binary websocket message into an ``ObsFrame``."""

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ObsProtocolError(f"Undecodable OBS frame: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("op"), int):
        raise ObsProtocolError(f"OBS frame without an integer op: {raw[:200]!r}")
    payload = data.get("d")
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ObsProtocolError(f"OBS frame op {data['op']} carries a non-object payload")
    return ObsFrame(op=data["op"], d=payload)


class ObsTransport(ABC):
    """Carries ``ObsFrame`` messages to and from one OBS instance."""

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def send(self, message: ObsFrame) -> None:
        ...

    @abstractmethod
    async def receive(self) -> ObsFrame:
        """Next inbound frame; raises ``ObsConnectionClosed`` once the socket is gone."""

    @abstractmethod
    async def close(self) -> None:
        ...
