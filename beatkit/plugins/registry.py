"""
Plugin registry: discovers, stores, and looks up editor plugins.
"""
from __future__ import annotations

import structlog

from beatkit.plugins.base import EditorPlugin

log = structlog.get_logger(__name__)


# Built-in plugin classes, populated by _load_builtins() on first access.
_BUILTIN_PLUGINS: dict[str, type[EditorPlugin]] | None = None


def _load_builtins() -> dict[str, type[EditorPlugin]]:
    """Import built-in plugin classes lazily to avoid circular imports."""
    from beatkit.plugins.capture import QuickCapturePlugin
    from beatkit.plugins.contd import AddContdsPlugin, CleanContdsPlugin
    from beatkit.plugins.cues import CueManagerPlugin
    from beatkit.plugins.keywords import KeywordsPlugin
    from beatkit.plugins.notepad import FloatingNotepadPlugin
    from beatkit.plugins.notes_bin import NotesBinPlugin
    from beatkit.plugins.style import ElementsOfStylePlugin
    from beatkit.plugins.word_count import WordCountPlugin

    return {
        "keywords": KeywordsPlugin,
        "add_contds": AddContdsPlugin,
        "clean_contds": CleanContdsPlugin,
        "qman": CueManagerPlugin,
        "word_count": WordCountPlugin,
        "elements_of_style": ElementsOfStylePlugin,
        "quick_capture": QuickCapturePlugin,
        "notes_bin": NotesBinPlugin,
        "floating_notepad": FloatingNotepadPlugin,
    }


def _get_builtins() -> dict[str, type[EditorPlugin]]:
    global _BUILTIN_PLUGINS
    if _BUILTIN_PLUGINS is None:
        _BUILTIN_PLUGINS = _load_builtins()
    return _BUILTIN_PLUGINS


DEFAULT_PLUGIN_NAMES: list[str] = [
    "keywords",
    "add_contds",
    "clean_contds",
    "qman",
    "word_count",
    "elements_of_style",
    "quick_capture",
    "notes_bin",
    "floating_notepad",
]


class PluginRegistry:
    """The set of plugins enabled for an editor session."""

    def __init__(self) -> None:
        self._plugins: dict[str, EditorPlugin] = {}

    def register(self, plugin: EditorPlugin) -> None:
        if plugin.name in self._plugins:
            raise ValueError(
                f"Duplicate plugin name '{plugin.name}'. "
                f"Already registered: {self._plugins[plugin.name]!r}"
            )
        self._plugins[plugin.name] = plugin
        log.debug("registry.registered", plugin=plugin.name, title=plugin.title)

    def get(self, name: str) -> EditorPlugin:
        if name not in self._plugins:
            raise KeyError(f"Plugin '{name}' is not registered. Registered: {self.plugin_names}")
        return self._plugins[name]

    def activate_all(self, host, loop) -> None:
        """Activate every plugin against *host*, in registration order."""
        for plugin in self._plugins.values():
            plugin.activate(host, loop)
            log.info("registry.activated", plugin=plugin.name)

    def deactivate_all(self) -> None:
        for plugin in reversed(list(self._plugins.values())):
            plugin.deactivate()

    @property
    def plugin_names(self) -> list[str]:
        return list(self._plugins.keys())

    def __len__(self) -> int:
        return len(self._plugins)

    # ----- Factory methods ------------------------------------------------

    @classmethod
    def from_config(cls, plugin_names: list[str]) -> PluginRegistry:
        """Build a registry from a list of plugin names.

        Names are looked up in the built-in plugin table.  Unknown names
        raise ``KeyError`` so configuration errors are caught early.
        """
        builtins = _get_builtins()
        registry = cls()
        for name in plugin_names:
            if name not in builtins:
                raise KeyError(
                    f"Unknown plugin '{name}'. "
                    f"Available: {sorted(builtins.keys())}"
                )
            registry.register(builtins[name]())
        return registry

    @classmethod
    def default(cls) -> PluginRegistry:
        """Registry with every built-in plugin."""
        return cls.from_config(DEFAULT_PLUGIN_NAMES)
