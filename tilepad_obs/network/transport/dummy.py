"""Loopback transport that impersonates an OBS instance for offline runs."""

from __future__ import annotations

import asyncio
import logging

from tilepad_obs.network import protocol
from tilepad_obs.network.errors import ObsConnectionClosed, ObsSendError

from .base import ObsFrame, ObsTransport

LOGGER = logging.getLogger(__name__)


class DummyTransport(ObsTransport):
    """Answers the handshake and acknowledges every request with success."""

    def __init__(self, url: str | None = None) -> None:
        self._url = url
        self._inbox: asyncio.Queue[ObsFrame] = asyncio.Queue()
        self._open = False

    async def connect(self) -> None:
        LOGGER.debug("Dummy transport connect() %s", self._url)
        self._open = True
        await self._inbox.put(
            {
                "op": protocol.OpCode.HELLO,
                "d": {"obsWebSocketVersion": "dummy", "rpcVersion": protocol.RPC_VERSION},
            }
        )

    async def send(self, message: ObsFrame) -> None:
        if not self._open:
            raise ObsSendError("Dummy transport is closed")
        LOGGER.debug("Dummy transport send(): %s", message)
        op = message.get("op")
        data = message.get("d") or {}
        if op == protocol.OpCode.IDENTIFY:
            await self._inbox.put(
                {"op": protocol.OpCode.IDENTIFIED, "d": {"negotiatedRpcVersion": protocol.RPC_VERSION}}
            )
        elif op == protocol.OpCode.REQUEST:
            await self._inbox.put(
                {
                    "op": protocol.OpCode.REQUEST_RESPONSE,
                    "d": {
                        "requestType": data.get("requestType"),
                        "requestId": data.get("requestId"),
                        "requestStatus": {"result": True, "code": protocol.RequestStatus.SUCCESS},
                    },
                }
            )

    async def receive(self) -> ObsFrame:
        if not self._open:
            raise ObsConnectionClosed(None, "Dummy transport is closed")
        message = await self._inbox.get()
        LOGGER.debug("Dummy transport receive(): %s", message)
        return message

    async def close(self) -> None:
        LOGGER.debug("Dummy transport close()")
        self._open = False
