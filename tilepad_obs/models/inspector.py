"""Messages exchanged with the plugin inspector UI."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .auth import Auth


class SelectOption(BaseModel):
    """Option for a select dropdown menu."""

    label: str
    value: str


class GetClientState(BaseModel):
    type: Literal["GET_CLIENT_STATE"] = "GET_CLIENT_STATE"


class GetProfiles(BaseModel):
    type: Literal["GET_PROFILES"] = "GET_PROFILES"


class GetScenes(BaseModel):
    type: Literal["GET_SCENES"] = "GET_SCENES"


class Connect(BaseModel):
    type: Literal["CONNECT"] = "CONNECT"
    auth: Auth


InspectorMessageIn = Annotated[
    Union[GetClientState, GetProfiles, GetScenes, Connect],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InspectorMessageIn] = TypeAdapter(InspectorMessageIn)


def parse_inspector_message(raw: Any) -> InspectorMessageIn:
    """Validate an inbound inspector payload; raises ``pydantic.ValidationError``."""

    return _inbound_adapter.validate_python(raw)


class ClientStateMessage(BaseModel):
    type: Literal["CLIENT_STATE"] = "CLIENT_STATE"
    state: str


class ProfilesMessage(BaseModel):
    type: Literal["PROFILES"] = "PROFILES"
    profiles: List[SelectOption]


class ScenesMessage(BaseModel):
    type: Literal["SCENES"] = "SCENES"
    scenes: List[SelectOption]


InspectorMessageOut = Union[ClientStateMessage, ProfilesMessage, ScenesMessage]


def dump_message(message: BaseModel) -> Dict[str, Any]:
    return message.model_dump(mode="json")
