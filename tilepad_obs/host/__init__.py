"""Tilepad host link (plugin socket, inspector + settings handles)."""

from tilepad_obs.host.handles import Inspector, PluginSessionHandle
from tilepad_obs.host.link import HostLink

__all__ = ["HostLink", "Inspector", "PluginSessionHandle"]
