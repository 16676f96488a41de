"""Host-facing plugin: turns host callbacks into session operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, Optional, Set

from pydantic import ValidationError

from tilepad_obs.models import (
    ClientStateMessage,
    Connect,
    GetClientState,
    GetProfiles,
    GetScenes,
    Properties,
    ProfilesMessage,
    ScenesMessage,
    SelectOption,
    parse_inspector_message,
)
from tilepad_obs.network.client import ObsClient
from tilepad_obs.plugin.actions import command_for, parse_action
from tilepad_obs.session.manager import ObsSession, StateObserver

LOGGER = logging.getLogger(__name__)


@dataclass
class ObsPlugin:
    """Routes properties, inspector messages and tile presses to the OBS session."""

    session: ObsSession

    _tasks: Set[asyncio.Task[Any]] = field(default_factory=set, init=False, repr=False)

    def on_properties(self, properties: Any) -> None:
        try:
            auth = Properties.model_validate(properties).auth
        except ValidationError as exc:
            LOGGER.warning("Invalid plugin properties, staying disconnected: %s", exc)
            auth = None
        self._spawn(self.session.configure(auth), name="obs-configure")

    def on_inspector_open(self, inspector: StateObserver) -> None:
        self.session.set_inspector(inspector)

    def on_inspector_close(self, inspector: StateObserver) -> None:
        self.session.set_inspector(None)

    def on_inspector_message(self, inspector: StateObserver, message: Any) -> None:
        try:
            parsed = parse_inspector_message(message)
        except ValidationError:
            LOGGER.debug("Ignoring unknown inspector message: %r", message)
            return

        if isinstance(parsed, GetClientState):
            inspector.send(ClientStateMessage(state=self.session.get_state().value))
        elif isinstance(parsed, Connect):
            self._spawn(self.session.request_reconnect(parsed.auth), name="obs-reconnect")
        elif isinstance(parsed, GetProfiles):
            self._run_command("get profiles", _send_profiles(inspector))
        elif isinstance(parsed, GetScenes):
            self._run_command("get scenes", _send_scenes(inspector))

    def on_tile_clicked(self, action_id: str, properties: Any) -> None:
        try:
            action = parse_action(action_id, properties)
        except ValidationError as exc:
            LOGGER.error("Failed to deserialize %s action: %s", action_id, exc)
            return
        if action is None:
            LOGGER.debug("Unknown tile action requested: %s", action_id)
            return

        command = command_for(action)
        if command is None:
            return
        self._run_command(command.description, command.run)

    async def stop(self) -> None:
        """Cancel in-flight host work and shut the session down."""

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.session.stop()

    async def drain(self) -> None:
        """Wait for every task spawned so far, including ones spawned while waiting."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _run_command(self, description: str, work: Callable[[ObsClient], Awaitable[Any]]) -> None:
        async def _execute() -> None:
            try:
                await self.session.execute(work)
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Failed to %s: %s", description, exc)

        self._spawn(_execute(), name=f"obs-command-{description.replace(' ', '-')}")

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: Optional[str] = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Plugin task %s failed", task.get_name(), exc_info=exc)


def _send_profiles(inspector: StateObserver) -> Callable[[ObsClient], Awaitable[None]]:
    async def _work(client: ObsClient) -> None:
        listing = await client.profiles.list()
        inspector.send(
            ProfilesMessage(profiles=[SelectOption(label=name, value=name) for name in listing.profiles])
        )

    return _work


def _send_scenes(inspector: StateObserver) -> Callable[[ObsClient], Awaitable[None]]:
    async def _work(client: ObsClient) -> None:
        scenes = await client.scenes.list()
        inspector.send(ScenesMessage(scenes=[SelectOption(label=scene.name, value=scene.uuid) for scene in scenes]))

    return _work
