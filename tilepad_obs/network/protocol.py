"""obs-websocket v5 framing helpers: op codes, close codes and message models."""

from __future__ import annotations

import base64
import enum
import hashlib
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

RPC_VERSION = 1


class OpCode(enum.IntEnum):
    HELLO = 0
    IDENTIFY = 1
    IDENTIFIED = 2
    REIDENTIFY = 3
    EVENT = 5
    REQUEST = 6
    REQUEST_RESPONSE = 7
    REQUEST_BATCH = 8
    REQUEST_BATCH_RESPONSE = 9


class CloseCode(enum.IntEnum):
    """Close codes OBS sends when it terminates the websocket."""

    UNKNOWN_REASON = 4000
    MESSAGE_DECODE_ERROR = 4002
    MISSING_DATA_FIELD = 4003
    INVALID_DATA_FIELD_TYPE = 4004
    INVALID_DATA_FIELD_VALUE = 4005
    UNKNOWN_OP_CODE = 4006
    NOT_IDENTIFIED = 4007
    ALREADY_IDENTIFIED = 4008
    AUTHENTICATION_FAILED = 4009
    UNSUPPORTED_RPC_VERSION = 4010
    SESSION_INVALIDATED = 4011
    UNSUPPORTED_FEATURE = 4012


class RequestStatus(enum.IntEnum):
    SUCCESS = 100


class _ObsModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AuthChallenge(_ObsModel):
    challenge: str
    salt: str


class Hello(_ObsModel):
    obs_websocket_version: str = Field(alias="obsWebSocketVersion")
    rpc_version: int = Field(alias="rpcVersion")
    authentication: Optional[AuthChallenge] = None


class Identified(_ObsModel):
    negotiated_rpc_version: int = Field(alias="negotiatedRpcVersion")


class Status(_ObsModel):
    result: bool
    code: int
    comment: Optional[str] = None


class RequestResponse(_ObsModel):
    request_type: str = Field(alias="requestType")
    request_id: str = Field(alias="requestId")
    request_status: Status = Field(alias="requestStatus")
    response_data: Optional[Dict[str, Any]] = Field(default=None, alias="responseData")


def authentication_string(password: str, salt: str, challenge: str) -> str:
    """Compute the Identify authentication string from the Hello challenge."""

    secret = base64.b64encode(hashlib.sha256((password + salt).encode("utf-8")).digest())
    return base64.b64encode(hashlib.sha256(secret + challenge.encode("utf-8")).digest()).decode("utf-8")


def build_identify(authentication: Optional[str], *, event_subscriptions: int = 0) -> Dict[str, Any]:
    data: Dict[str, Any] = {"rpcVersion": RPC_VERSION, "eventSubscriptions": event_subscriptions}
    if authentication is not None:
        data["authentication"] = authentication
    return {"op": OpCode.IDENTIFY, "d": data}


def build_request(request_type: str, request_id: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"requestType": request_type, "requestId": request_id}
    if data:
        payload["requestData"] = data
    return {"op": OpCode.REQUEST, "d": payload}
