"""WebSocket link between the plugin process and the Tilepad host."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Optional

import websockets
from pydantic import BaseModel, ValidationError
from websockets.exceptions import ConnectionClosed

from tilepad_obs.config import PluginSettings
from tilepad_obs.models.host import GetProperties, HostFrameIn, RegisterPlugin, parse_host_frame

LOGGER = logging.getLogger(__name__)

Connect = Callable[[str], Awaitable[Any]]


class HostLink:
    """Registers the plugin with the host, queues outbound frames, yields inbound ones."""

    def __init__(self, settings: PluginSettings, *, connect: Optional[Connect] = None) -> None:
        self._settings = settings
        self._connect: Connect = connect or websockets.connect
        self._ws: Any = None
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._writer_task: Optional[asyncio.Task[None]] = None
        self._closed = False

    async def start(self) -> None:
        """Open the socket, register the plugin and ask for the stored properties."""

        url = str(self._settings.connect_url)
        LOGGER.info("Connecting to Tilepad host at %s", url)
        self._ws = await self._connect(url)
        self._writer_task = asyncio.create_task(self._write_loop(), name="host-writer")
        self.send_nowait(RegisterPlugin(plugin_id=self._settings.plugin_id))
        self.send_nowait(GetProperties())

    def send_nowait(self, frame: BaseModel) -> None:
        """Queue a frame for the host without waiting for it to be written.

        Frames are dropped once the writer has stopped; nothing would drain them.
        """

        if self._closed:
            LOGGER.debug("Dropping host frame %s, link is closed", getattr(frame, "type", type(frame).__name__))
            return
        self._outbox.put_nowait(frame.model_dump(mode="json"))

    @property
    def closed(self) -> bool:
        return self._closed

    async def frames(self) -> AsyncIterator[HostFrameIn]:
        """Async iterator of validated inbound frames; ends when the host closes."""

        if self._ws is None:
            raise RuntimeError("Host link not started")
        try:
            async for raw in self._ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8")
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    LOGGER.warning("Dropping undecodable host frame: %r", raw[:200])
                    continue
                try:
                    frame = parse_host_frame(data)
                except ValidationError as exc:
                    frame_type = data.get("type") if isinstance(data, dict) else None
                    LOGGER.debug("Ignoring unsupported host frame %s: %s", frame_type, exc)
                    continue
                yield frame
        except ConnectionClosed as exc:
            LOGGER.warning("Tilepad host connection closed: %s", exc)

    async def close(self) -> None:
        self._stop_accepting()
        task = self._writer_task
        self._writer_task = None
        if task:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._ws is not None:
            LOGGER.info("Closing Tilepad host link")
            await self._ws.close()
            self._ws = None

    async def _write_loop(self) -> None:
        while True:
            frame = await self._outbox.get()
            payload = json.dumps(frame)
            LOGGER.debug("Host send: %s", payload)
            try:
                await self._ws.send(payload)
            except ConnectionClosed as exc:
                LOGGER.warning("Host writer stopped, connection closed: %s", exc)
                self._stop_accepting()
                return

    def _stop_accepting(self) -> None:
        self._closed = True
        dropped = 0
        while not self._outbox.empty():
            self._outbox.get_nowait()
            dropped += 1
        if dropped:
            LOGGER.debug("Dropped %s unsent host frame(s)", dropped)
