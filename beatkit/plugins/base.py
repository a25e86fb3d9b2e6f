"""
Core abstractions for editor plugins.

An EditorPlugin is activated against one open document: it registers its
menu item and listeners on the host and keeps whatever state it needs
until it is deactivated.  All callbacks run on the shared event loop.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import structlog

from beatkit.host.base import HtmlWindow, WindowClosedError

if TYPE_CHECKING:
    from beatkit.host.base import Host
    from beatkit.runtime.loop import EventLoop

log = structlog.get_logger(__name__)


class EditorPlugin(ABC):
    """A plugin bound to one document.

    Lifecycle:
        1. ``activate`` registers menu items / listeners and does any first pass.
        2. Host events and menu callbacks drive the plugin from the event loop.
        3. ``deactivate`` removes decorations and closes windows.
    """

    host: Optional["Host"] = None
    loop: Optional["EventLoop"] = None
    window: Optional[HtmlWindow] = None
    window_visible: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique registry name, e.g. ``'keywords'``."""

    @property
    @abstractmethod
    def title(self) -> str:
        """Menu title shown by the host."""

    @property
    def shortcut(self) -> tuple[str, ...]:
        return ()

    @abstractmethod
    def activate(self, host: "Host", loop: "EventLoop") -> None:
        """Bind to *host*.  Called once per document."""

    def deactivate(self) -> None:
        self.close_window()

    # ----- Window helpers ---------------------------------------------------

    def push_html(self, html: str) -> None:
        """Best-effort panel update; a closed window is not an error."""
        if self.window is None:
            return
        try:
            self.window.set_html(html)
        except WindowClosedError:
            log.debug("plugin.window_closed", plugin=self.name)

    def run_js(self, script: str) -> None:
        if self.window is None:
            return
        try:
            self.window.run_js(script)
        except WindowClosedError:
            log.debug("plugin.window_closed", plugin=self.name)

    def toggle_window(self) -> bool:
        """Show/hide the panel.  Returns whether it is now visible."""
        if self.window is None or not self.window.is_open:
            return False
        if self.window_visible:
            self.window.hide()
        else:
            self.window.show()
        self.window_visible = not self.window_visible
        return self.window_visible

    def close_window(self) -> None:
        if self.window is not None and self.window.is_open:
            self.window.close()
        self.window = None
