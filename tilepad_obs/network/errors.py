"""Error types raised by the OBS connection and their failure classification."""

from __future__ import annotations

import asyncio
import enum
from typing import Optional

from tilepad_obs.network.protocol import CloseCode


class ObsError(RuntimeError):
    """Base class for failures talking to OBS."""


class ObsConnectError(ObsError):
    """Raised when a connection to OBS cannot be opened or identified."""


class ObsAuthError(ObsError):
    """Raised when OBS rejects the supplied password."""


class ObsSendError(ObsError):
    """Raised when a frame cannot be written because the socket is gone."""


class ObsTimeoutError(ObsError):
    """Raised when OBS does not answer a request in time."""


class ObsProtocolError(ObsError):
    """Raised when OBS sends a frame that is not valid obs-websocket JSON."""


class ObsConnectionClosed(ObsError):
    """Raised when the socket is closed by the remote end or the transport."""

    def __init__(self, code: Optional[int], reason: str = "") -> None:
        super().__init__(f"Connection closed (code={code}, reason={reason!r})")
        self.code = code
        self.reason = reason


class ObsRequestError(ObsError):
    """Raised when OBS answers a request with a failed request status."""

    def __init__(self, request_type: str, code: int, comment: Optional[str] = None) -> None:
        message = f"{request_type} failed with status {code}"
        if comment:
            message = f"{message}: {comment}"
        super().__init__(message)
        self.request_type = request_type
        self.code = code
        self.comment = comment


class FailureKind(enum.Enum):
    """How a failure affects the health of the connection."""

    AUTH_REJECTED = "auth_rejected"
    TRANSIENT = "transient"
    COMMAND_FAILED = "command_failed"


def classify_failure(exc: BaseException) -> FailureKind:
    """Sort an exception into auth rejection, transport loss or a command-local failure."""

    if isinstance(exc, ObsAuthError):
        return FailureKind.AUTH_REJECTED
    if isinstance(exc, ObsConnectionClosed):
        if exc.code == CloseCode.AUTHENTICATION_FAILED:
            return FailureKind.AUTH_REJECTED
        return FailureKind.TRANSIENT
    if isinstance(exc, ObsRequestError):
        return FailureKind.COMMAND_FAILED
    if isinstance(exc, (ObsError, OSError, asyncio.TimeoutError)):
        return FailureKind.TRANSIENT
    return FailureKind.COMMAND_FAILED
