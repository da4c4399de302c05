"""Plugin system for wrapkit."""

from wrapkit.plugins.base import (
    Plugin,
    PluginContext,
    PluginExecution,
    define_plugin,
    run_plugins_after,
    run_plugins_before,
    run_plugins_on_error,
)

__all__ = [
    "Plugin",
    "PluginContext",
    "PluginExecution",
    "define_plugin",
    "run_plugins_after",
    "run_plugins_before",
    "run_plugins_on_error",
]
