"""Routes inbound host frames to plugin callbacks."""

from __future__ import annotations

import logging

from tilepad_obs.host.handles import Inspector
from tilepad_obs.host.link import HostLink
from tilepad_obs.models.host import (
    HostFrameIn,
    InspectorClose,
    InspectorOpen,
    PropertiesFrame,
    RecvFromInspector,
    Registered,
    TileClicked,
)
from tilepad_obs.plugin.plugin import ObsPlugin

LOGGER = logging.getLogger(__name__)


def dispatch_frame(plugin: ObsPlugin, link: HostLink, frame: HostFrameIn) -> None:
    if isinstance(frame, Registered):
        LOGGER.info("Registered with Tilepad host as %s", frame.plugin_id)
    elif isinstance(frame, PropertiesFrame):
        plugin.on_properties(frame.properties)
    elif isinstance(frame, TileClicked):
        plugin.on_tile_clicked(frame.ctx.action_id, frame.properties)
    elif isinstance(frame, RecvFromInspector):
        plugin.on_inspector_message(Inspector(link, frame.ctx), frame.message)
    elif isinstance(frame, InspectorOpen):
        plugin.on_inspector_open(Inspector(link, frame.ctx))
    elif isinstance(frame, InspectorClose):
        plugin.on_inspector_close(Inspector(link, frame.ctx))


async def route_frames(plugin: ObsPlugin, link: HostLink) -> None:
    """Consume the host link until it closes."""

    async for frame in link.frames():
        try:
            dispatch_frame(plugin, link, frame)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Failed to handle host frame %s", frame.type)
    LOGGER.info("Tilepad host link ended")
