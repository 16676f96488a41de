"""Plugin configuration."""

from .settings import PluginSettings, get_settings

__all__ = ["PluginSettings", "get_settings"]
