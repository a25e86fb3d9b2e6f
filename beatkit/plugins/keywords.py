"""
Keywords panel plugin.

Opens a panel listing every `#tag` / `@tag` found in inline notes and the
notepad, keeps document highlights in sync, and jumps between a tag's
occurrences on click.  Closing the panel removes every highlight.
"""
from __future__ import annotations

from typing import Any, Optional

import structlog

from beatkit.plugins.base import EditorPlugin
from beatkit.tags.colors import ContrastParams
from beatkit.tags.session import KeywordsSession
from beatkit.tags.view import KeywordsView, render_html

log = structlog.get_logger(__name__)

WINDOW_SIZE = (600, 500)


class KeywordsPlugin(EditorPlugin):
    def __init__(self, params: Optional[ContrastParams] = None) -> None:
        self.params = params
        self.session: Optional[KeywordsSession] = None

    @property
    def name(self) -> str:
        return "keywords"

    @property
    def title(self) -> str:
        return "Keywords"

    @property
    def shortcut(self) -> tuple[str, ...]:
        return ("cmd", "ctrl", "k")

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        host.menu_item(self.title, self.shortcut, self.toggle)
        host.on_text_change(self._on_change)
        host.on_notepad_change(self._on_change)
        self.open()

    def open(self) -> bool:
        """Scan and show the panel.  Returns False when there is nothing to show."""
        session = KeywordsSession(self.host, self.loop, self.params)
        session.refresh()
        if not len(session.index):
            session.close()
            self.host.alert(
                "No Tags Found",
                "Try adding a hashtag within an inline note (e.g., [[This is a #tag]]).",
            )
            return False

        self.session = session
        html = render_html(session.render_state())
        self.window = self.host.html_window(html, *WINDOW_SIZE, on_close=self._on_window_closed)
        self.window_visible = True
        session.subscribe(self._render)
        log.info("keywords.opened", tags=len(session.index))
        return True

    def toggle(self) -> None:
        if self.session is None or self.session.closed:
            self.open()
        else:
            self.toggle_window()

    def call(self, method: str, *args: Any) -> Any:
        """Entry point for the panel's `Beat.call(method, ...)` bridge."""
        if self.session is None or self.session.closed:
            raise RuntimeError("keywords panel is not open")
        return self.session.dispatch(method, args)

    def deactivate(self) -> None:
        self.close_window()
        if self.session is not None and not self.session.closed:
            self.session.close()

    def _on_change(self) -> None:
        if self.session is not None and not self.session.closed:
            self.session.on_text_change()

    def _render(self, view: KeywordsView) -> None:
        self.push_html(render_html(view))

    def _on_window_closed(self) -> None:
        if self.session is not None:
            self.session.close()
        self.window = None
