"""Plugin callbacks and tile action mapping."""

from tilepad_obs.plugin.actions import ACTIONS, Command, command_for, parse_action
from tilepad_obs.plugin.plugin import ObsPlugin

__all__ = ["ObsPlugin", "ACTIONS", "Command", "command_for", "parse_action"]
