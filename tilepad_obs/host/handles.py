"""Handles the plugin uses to talk back to the host."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from tilepad_obs.models.host import InspectorContext, SendToInspector, SetProperties
from tilepad_obs.models.inspector import dump_message

if TYPE_CHECKING:
    from tilepad_obs.host.link import HostLink

LOGGER = logging.getLogger(__name__)


class Inspector:
    """An open inspector window; ``send`` is fire-and-forget."""

    def __init__(self, link: HostLink, ctx: InspectorContext) -> None:
        self._link = link
        self.ctx = ctx

    def send(self, message: BaseModel) -> None:
        LOGGER.debug("Inspector send %s", getattr(message, "type", type(message).__name__))
        self._link.send_nowait(SendToInspector(ctx=self.ctx, message=dump_message(message)))


class PluginSessionHandle:
    """Writes plugin properties back to the host's settings store."""

    def __init__(self, link: HostLink) -> None:
        self._link = link

    def set_properties(self, properties: BaseModel) -> None:
        self._link.send_nowait(SetProperties(properties=properties.model_dump(mode="json")))
