"""Tilepad plugin for controlling OBS Studio over obs-websocket."""

from tilepad_obs.config import PluginSettings, get_settings
from tilepad_obs.session import ClientState, ObsSession

__all__ = ["PluginSettings", "get_settings", "ClientState", "ObsSession"]

__version__ = "0.1.0"
