from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Auth(BaseModel):
    """Connection details for an OBS websocket server."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(ge=0, le=65535)
    password: str = Field(default="", repr=False)

    def effective_password(self) -> Optional[str]:
        """The password to authenticate with, or ``None`` when it is blank."""

        if not self.password.strip():
            return None
        return self.password


class Properties(BaseModel):
    """Plugin-level properties persisted by the host."""

    auth: Optional[Auth] = None
