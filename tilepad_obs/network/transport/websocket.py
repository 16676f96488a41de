"""WebSocket transport implementation."""

from __future__ import annotations

import logging
from typing import Any, Optional

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from tilepad_obs.network.errors import ObsConnectError, ObsConnectionClosed, ObsSendError
from tilepad_obs.network.transport.base import ObsFrame, ObsTransport, decode_frame, encode_frame

LOGGER = logging.getLogger(__name__)

OBS_SUBPROTOCOL = "obswebsocket.json"


def _close_details(exc: ConnectionClosed) -> tuple[Optional[int], str]:
    frame = exc.rcvd
    if frame is None:
        return None, ""
    return frame.code, frame.reason


class WebSocketTransport(ObsTransport):
    """WebSocket transport speaking the JSON obs-websocket subprotocol."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._ws: Any = None

    @property
    def url(self) -> str:
        return self._url

    async def connect(self) -> None:
        LOGGER.info("Connecting to OBS WebSocket at %s", self._url)
        try:
            self._ws = await websockets.connect(
                self._url,
                subprotocols=[OBS_SUBPROTOCOL],
                max_size=None,
            )
        except (OSError, InvalidHandshake, InvalidURI) as exc:
            raise ObsConnectError(f"Failed to open websocket to {self._url}: {exc}") from exc

    async def send(self, message: ObsFrame) -> None:
        if not self._ws:
            raise ObsSendError("WebSocket transport not connected")
        payload = encode_frame(message)
        LOGGER.debug("WebSocket send: %s", payload)
        try:
            await self._ws.send(payload)
        except ConnectionClosed as exc:
            code, reason = _close_details(exc)
            raise ObsSendError(f"Connection closed while sending (code={code}, reason={reason!r})") from exc
        except OSError as exc:
            raise ObsSendError(f"Failed to send frame: {exc}") from exc

    async def receive(self) -> ObsFrame:
        if not self._ws:
            raise ObsConnectionClosed(None, "WebSocket transport not connected")
        try:
            raw = await self._ws.recv()
        except ConnectionClosed as exc:
            code, reason = _close_details(exc)
            raise ObsConnectionClosed(code, reason) from exc
        LOGGER.debug("WebSocket receive: %s", raw)
        return decode_frame(raw)

    async def close(self) -> None:
        if self._ws:
            LOGGER.info("Closing WebSocket transport to %s", self._url)
            await self._ws.close()
            self._ws = None
