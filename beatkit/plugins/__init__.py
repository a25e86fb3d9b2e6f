"""
Editor plugin system.

Each plugin binds to one open document through the `Host` interface and
runs entirely on the shared event loop.  Plugins never reach past the host:
document text, decorations, windows and persistence all go through it.

Quick start:
    from beatkit.plugins.registry import PluginRegistry
    registry = PluginRegistry.default()
    registry.activate_all(host, loop)
"""
from beatkit.plugins.base import EditorPlugin

__all__ = ["EditorPlugin"]
