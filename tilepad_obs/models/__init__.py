from .auth import Auth, Properties
from .inspector import (
    ClientStateMessage,
    Connect,
    GetClientState,
    GetProfiles,
    GetScenes,
    InspectorMessageIn,
    InspectorMessageOut,
    ProfilesMessage,
    ScenesMessage,
    SelectOption,
    dump_message,
    parse_inspector_message,
)

__all__ = [
    "Auth",
    "Properties",
    "ClientStateMessage",
    "Connect",
    "GetClientState",
    "GetProfiles",
    "GetScenes",
    "InspectorMessageIn",
    "InspectorMessageOut",
    "ProfilesMessage",
    "ScenesMessage",
    "SelectOption",
    "dump_message",
    "parse_inspector_message",
]
