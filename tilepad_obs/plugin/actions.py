"""Tile actions and the OBS requests they map to."""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, Union
from uuid import UUID

from pydantic import BaseModel

from tilepad_obs.network.client import ObsClient


class RecordingAction(str, enum.Enum):
    START_STOP = "StartStop"
    START = "Start"
    STOP = "Stop"
    PAUSE_RESUME = "PauseResume"
    PAUSE = "Pause"
    RESUME = "Resume"


class StreamAction(str, enum.Enum):
    START_STOP = "StartStop"
    START = "Start"
    STOP = "Stop"


class VirtualCameraAction(str, enum.Enum):
    START_STOP = "StartStop"
    START = "Start"
    STOP = "Stop"


class RecordingActionProperties(BaseModel):
    action: Optional[RecordingAction] = None


class StreamActionProperties(BaseModel):
    action: Optional[StreamAction] = None


class VirtualCameraActionProperties(BaseModel):
    action: Optional[VirtualCameraAction] = None


class SwitchSceneProperties(BaseModel):
    scene: Optional[str] = None


class SwitchProfileProperties(BaseModel):
    profile: Optional[str] = None


Action = Union[
    RecordingActionProperties,
    StreamActionProperties,
    VirtualCameraActionProperties,
    SwitchSceneProperties,
    SwitchProfileProperties,
]

ACTIONS: Dict[str, Type[BaseModel]] = {
    "recording": RecordingActionProperties,
    "streaming": StreamActionProperties,
    "virtual_camera": VirtualCameraActionProperties,
    "switch_scene": SwitchSceneProperties,
    "switch_profile": SwitchProfileProperties,
}


def parse_action(action_id: str, properties: Any) -> Optional[Action]:
    """Decode tile properties for ``action_id``.

    Returns ``None`` for an unknown action id; raises ``pydantic.ValidationError``
    when the properties do not match the action's shape.
    """

    model = ACTIONS.get(action_id)
    if model is None:
        return None
    return model.model_validate(properties)


@dataclass(frozen=True)
class Command:
    """A single OBS request ready to run through the session."""

    description: str
    run: Callable[[ObsClient], Awaitable[None]]


_RECORDING: Dict[RecordingAction, Command] = {
    RecordingAction.START_STOP: Command("toggle recording", lambda c: c.recording.toggle()),
    RecordingAction.START: Command("start recording", lambda c: c.recording.start()),
    RecordingAction.STOP: Command("stop recording", lambda c: c.recording.stop()),
    RecordingAction.PAUSE_RESUME: Command("toggle recording pause", lambda c: c.recording.toggle_pause()),
    RecordingAction.PAUSE: Command("pause recording", lambda c: c.recording.pause()),
    RecordingAction.RESUME: Command("resume recording", lambda c: c.recording.resume()),
}

_STREAMING: Dict[StreamAction, Command] = {
    StreamAction.START_STOP: Command("toggle streaming", lambda c: c.streaming.toggle()),
    StreamAction.START: Command("start streaming", lambda c: c.streaming.start()),
    StreamAction.STOP: Command("stop streaming", lambda c: c.streaming.stop()),
}

_VIRTUAL_CAMERA: Dict[VirtualCameraAction, Command] = {
    VirtualCameraAction.START_STOP: Command("toggle virtual camera", lambda c: c.virtual_cam.toggle()),
    VirtualCameraAction.START: Command("start virtual camera", lambda c: c.virtual_cam.start()),
    VirtualCameraAction.STOP: Command("stop virtual camera", lambda c: c.virtual_cam.stop()),
}


def command_for(action: Action) -> Optional[Command]:
    """Resolve the OBS request for a decoded action; ``None`` when nothing is selected."""

    if isinstance(action, RecordingActionProperties):
        return _RECORDING.get(action.action) if action.action else None
    if isinstance(action, StreamActionProperties):
        return _STREAMING.get(action.action) if action.action else None
    if isinstance(action, VirtualCameraActionProperties):
        return _VIRTUAL_CAMERA.get(action.action) if action.action else None
    if isinstance(action, SwitchSceneProperties):
        if not action.scene:
            return None
        try:
            scene_id = UUID(action.scene)
        except ValueError:
            return None
        return Command("set current scene", lambda c: c.scenes.set_current_program_scene(scene_id))
    if isinstance(action, SwitchProfileProperties):
        if action.profile is None:
            return None
        profile = action.profile
        return Command("set current profile", lambda c: c.profiles.set_current(profile))
    return None
