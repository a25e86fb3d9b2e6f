"""
Floating Notepad: the notepad in its own window, kept in sync both ways,
with jumps between markdown headings.
"""
from __future__ import annotations

import html
import json
from typing import Any, Optional

import structlog

from beatkit.notes.notepad import find_heading
from beatkit.plugins.base import EditorPlugin

log = structlog.get_logger(__name__)

WINDOW_SIZE = (2000, 600)

BRIDGE_METHODS = frozenset({"sync", "set_cursor", "next_heading", "previous_heading"})


def render_notepad(text: str) -> str:
    return (
        "<!doctype html><html><head><meta charset=\"UTF-8\"><title>Notepad</title></head><body>"
        '<textarea id="notepadTextarea" '
        'oninput="Beat.call(&quot;sync&quot;, this.value)">'
        f"{html.escape(text)}</textarea>"
        "</body></html>"
    )


class FloatingNotepadPlugin(EditorPlugin):
    def __init__(self) -> None:
        self.cursor_line = 0
        self._synced: Optional[str] = None

    @property
    def name(self) -> str:
        return "floating_notepad"

    @property
    def title(self) -> str:
        return "Floating Notepad"

    @property
    def shortcut(self) -> tuple[str, ...]:
        return ("cmd", "alt", "3")

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        host.menu_item(self.title, self.shortcut, self.toggle)
        host.on_notepad_change(self._on_notepad_change)

    def toggle(self) -> bool:
        if self.window is None or not self.window.is_open:
            self.window = self.host.html_window(
                render_notepad(self.host.notepad_text()), *WINDOW_SIZE, on_close=self._on_window_closed
            )
            self.window_visible = True
            return True
        return self.toggle_window()

    def sync(self, content: str) -> None:
        """Write the window's text back to the notepad."""
        self._synced = content
        self.host.set_notepad_text(content)

    def _on_notepad_change(self) -> None:
        text = self.host.notepad_text()
        if text == self._synced:
            return
        self._synced = None
        self.push_html(render_notepad(text))

    # ----- Heading navigation -----------------------------------------------

    def set_cursor(self, line: int) -> None:
        self.cursor_line = max(0, int(line))

    def next_heading(self, level: int = 1) -> Optional[int]:
        return self._jump(level, 1)

    def previous_heading(self, level: int = 1) -> Optional[int]:
        return self._jump(level, -1)

    def _jump(self, level: int, direction: int) -> Optional[int]:
        lines = self.host.notepad_text().split("\n")
        found = find_heading(lines, self.cursor_line, int(level), direction)
        if found is None:
            log.debug("notepad.no_heading", level=level, direction=direction, line=self.cursor_line)
            return None
        self.cursor_line = found
        self.run_js(f"setCursor({json.dumps(found)})")
        return found

    def call(self, method: str, *args: Any) -> Any:
        """Entry point for the window's `Beat.call(method, ...)` bridge."""
        if method not in BRIDGE_METHODS:
            raise ValueError(f"Unknown bridge method: {method!r}")
        return getattr(self, method)(*args)

    def _on_window_closed(self) -> None:
        self.window = None
