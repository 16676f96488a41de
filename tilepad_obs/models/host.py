"""Frames exchanged with the Tilepad host over the plugin socket."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class InspectorContext(BaseModel):
    """Identifies an open inspector; echoed back verbatim when replying."""

    model_config = ConfigDict(extra="allow")

    plugin_id: str | None = None
    action_id: str | None = None
    tile_id: str | None = None


class TileInteractionContext(BaseModel):
    model_config = ConfigDict(extra="allow")

    action_id: str
    plugin_id: str | None = None
    tile_id: str | None = None
    device_id: str | None = None


# Host -> plugin


class Registered(BaseModel):
    type: Literal["REGISTERED"] = "REGISTERED"
    plugin_id: str | None = None


class PropertiesFrame(BaseModel):
    type: Literal["PROPERTIES"] = "PROPERTIES"
    properties: Any = None


class TileClicked(BaseModel):
    type: Literal["TILE_CLICKED"] = "TILE_CLICKED"
    ctx: TileInteractionContext
    properties: Any = None


class RecvFromInspector(BaseModel):
    type: Literal["RECV_FROM_INSPECTOR"] = "RECV_FROM_INSPECTOR"
    ctx: InspectorContext
    message: Any = None


class InspectorOpen(BaseModel):
    type: Literal["INSPECTOR_OPEN"] = "INSPECTOR_OPEN"
    ctx: InspectorContext


class InspectorClose(BaseModel):
    type: Literal["INSPECTOR_CLOSE"] = "INSPECTOR_CLOSE"
    ctx: InspectorContext


HostFrameIn = Annotated[
    Union[Registered, PropertiesFrame, TileClicked, RecvFromInspector, InspectorOpen, InspectorClose],
    Field(discriminator="type"),
]

_host_frame_adapter: TypeAdapter[HostFrameIn] = TypeAdapter(HostFrameIn)


def parse_host_frame(raw: Any) -> HostFrameIn:
    return _host_frame_adapter.validate_python(raw)


# Plugin -> host


class RegisterPlugin(BaseModel):
    type: Literal["REGISTER_PLUGIN"] = "REGISTER_PLUGIN"
    plugin_id: str


class GetProperties(BaseModel):
    type: Literal["GET_PROPERTIES"] = "GET_PROPERTIES"


class SetProperties(BaseModel):
    type: Literal["SET_PROPERTIES"] = "SET_PROPERTIES"
    properties: Any
    partial: bool = True


class SendToInspector(BaseModel):
    type: Literal["SEND_TO_INSPECTOR"] = "SEND_TO_INSPECTOR"
    ctx: InspectorContext
    message: Any
