"""Authenticated obs-websocket client.

The client owns one transport for its whole life:
- ``ObsClient.connect`` runs the Hello/Identify/Identified handshake under a timeout
- a background receive loop correlates RequestResponse frames by ``requestId``
- losing the socket fails every pending request with a transport error
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from itertools import count
from typing import Any, Dict, Iterator, Optional

from pydantic import ValidationError

from tilepad_obs.network import protocol
from tilepad_obs.network.errors import (
    ObsAuthError,
    ObsConnectError,
    ObsConnectionClosed,
    ObsError,
    ObsRequestError,
    ObsSendError,
    ObsTimeoutError,
)
from tilepad_obs.network.requests import Profiles, Recording, Scenes, Streaming, VirtualCam
from tilepad_obs.network.transport.base import ObsTransport

LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[str], ObsTransport]


def endpoint_url(host: str, port: int) -> str:
    return f"ws://{host}:{port}"


class ObsClient:
    """A single identified session with OBS."""

    def __init__(self, transport: ObsTransport, *, request_timeout: float = 10.0) -> None:
        self._transport = transport
        self._request_timeout = request_timeout
        self._pending: Dict[str, asyncio.Future[Dict[str, Any]]] = {}
        self._request_ids: Iterator[int] = count(1)
        self._receive_task: Optional[asyncio.Task[None]] = None
        self._closed: Optional[ObsError] = None
        self.negotiated_rpc_version: Optional[int] = None

        self.recording = Recording(self)
        self.streaming = Streaming(self)
        self.virtual_cam = VirtualCam(self)
        self.scenes = Scenes(self)
        self.profiles = Profiles(self)

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        password: Optional[str],
        *,
        transport_factory: TransportFactory,
        timeout: float,
        request_timeout: float = 10.0,
    ) -> ObsClient:
        """Open, authenticate and identify a new session."""

        url = endpoint_url(host, port)
        client = cls(transport_factory(url), request_timeout=request_timeout)
        try:
            await asyncio.wait_for(client._identify(password), timeout=timeout)
        except asyncio.TimeoutError as exc:
            await client._abort()
            raise ObsConnectError(f"Timed out connecting to OBS at {url} after {timeout:.1f}s") from exc
        except ObsConnectionClosed as exc:
            await client._abort()
            if exc.code == protocol.CloseCode.AUTHENTICATION_FAILED:
                raise ObsAuthError(f"OBS at {url} rejected the password") from exc
            raise ObsConnectError(f"OBS at {url} closed the connection during handshake: {exc}") from exc
        except ObsError:
            await client._abort()
            raise
        except (ValidationError, ValueError, KeyError) as exc:
            await client._abort()
            raise ObsConnectError(f"Malformed handshake from OBS at {url}: {exc}") from exc

        client._receive_task = asyncio.create_task(client._receive_loop(), name="obs-receive")
        LOGGER.info("Identified with OBS at %s (rpc v%s)", url, client.negotiated_rpc_version)
        return client

    @property
    def is_closed(self) -> bool:
        return self._closed is not None

    async def _identify(self, password: Optional[str]) -> None:
        await self._transport.connect()

        frame = await self._transport.receive()
        if frame.get("op") != protocol.OpCode.HELLO:
            raise ObsConnectError(f"Expected Hello, got op {frame.get('op')}")
        hello = protocol.Hello.model_validate(frame.get("d") or {})

        authentication: Optional[str] = None
        if hello.authentication is not None:
            if password is None:
                LOGGER.warning("OBS requires a password but none is configured")
            else:
                authentication = protocol.authentication_string(
                    password, hello.authentication.salt, hello.authentication.challenge
                )
        await self._transport.send(protocol.build_identify(authentication))

        frame = await self._transport.receive()
        if frame.get("op") != protocol.OpCode.IDENTIFIED:
            raise ObsConnectError(f"Expected Identified, got op {frame.get('op')}")
        identified = protocol.Identified.model_validate(frame.get("d") or {})
        self.negotiated_rpc_version = identified.negotiated_rpc_version

    async def request(self, request_type: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a request and return its ``responseData`` (empty when OBS sends none)."""

        if self._closed is not None:
            raise ObsSendError(f"Cannot send {request_type}: connection is closed") from self._closed

        request_id = str(next(self._request_ids))
        future: asyncio.Future[Dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._transport.send(protocol.build_request(request_type, request_id, data))
            try:
                raw = await asyncio.wait_for(future, timeout=self._request_timeout)
            except asyncio.TimeoutError as exc:
                raise ObsTimeoutError(
                    f"{request_type} got no response within {self._request_timeout:.1f}s"
                ) from exc
        finally:
            self._pending.pop(request_id, None)

        response = protocol.RequestResponse.model_validate(raw)
        status = response.request_status
        if not status.result:
            raise ObsRequestError(request_type, status.code, status.comment)
        return response.response_data or {}

    async def close(self) -> None:
        """Stop the receive loop, close the socket and fail outstanding requests."""

        task = self._receive_task
        self._receive_task = None
        if task:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._fail_pending(ObsConnectionClosed(None, "client closed"))
        try:
            await self._transport.close()
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress transport close error", exc_info=True)

    async def _abort(self) -> None:
        self._closed = ObsConnectionClosed(None, "handshake aborted")
        try:
            await self._transport.close()
        except Exception:  # noqa: BLE001
            LOGGER.debug("Suppress transport close error after failed handshake", exc_info=True)

    async def _receive_loop(self) -> None:
        try:
            while True:
                frame = await self._transport.receive()
                self._dispatch(frame)
        except asyncio.CancelledError:
            raise
        except ObsError as exc:
            LOGGER.warning("OBS connection lost: %s", exc)
            self._fail_pending(exc)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("OBS receive loop crashed: %s", exc)
            self._fail_pending(ObsConnectionClosed(None, str(exc)))

    def _dispatch(self, frame: Dict[str, Any]) -> None:
        op = frame.get("op")
        data = frame.get("d") or {}
        if op == protocol.OpCode.REQUEST_RESPONSE:
            future = self._pending.get(str(data.get("requestId")))
            if future is None:
                LOGGER.debug("Dropping response for unknown request id %s", data.get("requestId"))
                return
            if not future.done():
                future.set_result(data)
        elif op == protocol.OpCode.EVENT:
            LOGGER.debug("Ignoring OBS event %s", data.get("eventType"))
        else:
            LOGGER.debug("Ignoring OBS frame with op %s", op)

    def _fail_pending(self, exc: ObsError) -> None:
        if self._closed is None:
            self._closed = exc
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(exc)
