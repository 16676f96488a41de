"""Plugin bootstrap entrypoint for host/session wiring."""

from __future__ import annotations

import logging
from typing import Optional

from tilepad_obs.config import PluginSettings, get_settings
from tilepad_obs.host import HostLink, PluginSessionHandle
from tilepad_obs.host.router import route_frames
from tilepad_obs.models import Auth, Properties
from tilepad_obs.network import DummyTransport, TransportFactory, WebSocketTransport
from tilepad_obs.plugin import ObsPlugin
from tilepad_obs.session import ObsSession, make_connector

LOGGER = logging.getLogger(__name__)


def build_plugin(settings: PluginSettings, link: HostLink) -> ObsPlugin:
    """Construct the session and plugin, persisting credentials through the host."""

    transport_factory: TransportFactory
    transport_factory = WebSocketTransport if settings.transport == "websocket" else DummyTransport
    LOGGER.debug("Initialising OBS session via %s", transport_factory.__name__)

    handle = PluginSessionHandle(link)

    async def _persist_auth(auth: Auth) -> None:
        handle.set_properties(Properties(auth=auth))

    session = ObsSession(
        settings=settings,
        connector=make_connector(settings, transport_factory),
        on_connected=_persist_auth,
    )
    return ObsPlugin(session=session)


async def serve_forever(settings: Optional[PluginSettings] = None) -> None:
    """Register with the host and handle its frames until the socket closes."""

    settings = settings or get_settings()
    link = HostLink(settings)
    plugin = build_plugin(settings, link)

    await link.start()
    try:
        await route_frames(plugin, link)
    finally:
        await plugin.stop()
        await link.close()
