"""Dynamic plugin discovery and loading."""

from bastion_core.plugins.loader import PluginLoader, PluginNotFoundError

__all__ = ["PluginLoader", "PluginNotFoundError"]
