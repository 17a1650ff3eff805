from devcli.plugins.api import PluginHooks, PluginManifest
from devcli.plugins.manager import PluginManager, PluginState

__all__ = ["PluginHooks", "PluginManifest", "PluginManager", "PluginState"]
