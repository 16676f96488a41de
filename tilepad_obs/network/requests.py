"""Typed request groups exposed on ``ObsClient``."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from tilepad_obs.network.client import ObsClient


class Scene(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(alias="sceneName")
    uuid: str = Field(alias="sceneUuid")
    index: Optional[int] = Field(default=None, alias="sceneIndex")


class ProfileList(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current: Optional[str] = Field(default=None, alias="currentProfileName")
    profiles: List[str] = Field(default_factory=list)


class _RequestGroup:
    def __init__(self, client: ObsClient) -> None:
        self._client = client


class Recording(_RequestGroup):
    async def toggle(self) -> None:
        await self._client.request("ToggleRecord")

    async def start(self) -> None:
        await self._client.request("StartRecord")

    async def stop(self) -> None:
        await self._client.request("StopRecord")

    async def toggle_pause(self) -> None:
        await self._client.request("ToggleRecordPause")

    async def pause(self) -> None:
        await self._client.request("PauseRecord")

    async def resume(self) -> None:
        await self._client.request("ResumeRecord")


class Streaming(_RequestGroup):
    async def toggle(self) -> None:
        await self._client.request("ToggleStream")

    async def start(self) -> None:
        await self._client.request("StartStream")

    async def stop(self) -> None:
        await self._client.request("StopStream")


class VirtualCam(_RequestGroup):
    async def toggle(self) -> None:
        await self._client.request("ToggleVirtualCam")

    async def start(self) -> None:
        await self._client.request("StartVirtualCam")

    async def stop(self) -> None:
        await self._client.request("StopVirtualCam")


class Scenes(_RequestGroup):
    async def list(self) -> List[Scene]:
        data = await self._client.request("GetSceneList")
        return [Scene.model_validate(item) for item in data.get("scenes", [])]

    async def set_current_program_scene(self, scene_uuid: UUID) -> None:
        await self._client.request("SetCurrentProgramScene", {"sceneUuid": str(scene_uuid)})


class Profiles(_RequestGroup):
    async def list(self) -> ProfileList:
        data = await self._client.request("GetProfileList")
        return ProfileList.model_validate(data)

    async def set_current(self, profile_name: str) -> None:
        await self._client.request("SetCurrentProfile", {"profileName": profile_name})
