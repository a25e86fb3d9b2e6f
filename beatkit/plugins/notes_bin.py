"""
Notes Bin: a side window of text snippets for the current document.

Cut or copy the selection into the bin, edit and reorder snippets from the
window, and move the whole bin in and out of `.txt` files.
"""
from __future__ import annotations

import html
from pathlib import Path
from typing import Any, Optional

import structlog

from beatkit.notes.bin import BinNote, NotesBin
from beatkit.plugins.base import EditorPlugin

log = structlog.get_logger(__name__)

WINDOW_SIZE = (300, 800)

BRIDGE_METHODS = frozenset({"add", "update", "remove", "move", "search", "import_file", "export_file"})


def render_bin(notes: list[BinNote], query: str = "") -> str:
    items = "".join(
        f'<li data-id="{note.id}"><pre>{html.escape(note.text)}</pre>'
        f'<button onclick="Beat.call(&quot;remove&quot;, {note.id})">&#10005;</button></li>'
        for note in notes
    )
    return (
        "<!doctype html><html><head><meta charset=\"UTF-8\"><title>Notes Bin</title></head><body>"
        f'<input id="search" type="search" value="{html.escape(query, quote=True)}" '
        'oninput="Beat.call(&quot;search&quot;, this.value)">'
        f'<ul class="bin">{items}</ul>'
        "</body></html>"
    )


class NotesBinPlugin(EditorPlugin):
    def __init__(self) -> None:
        self.bin: Optional[NotesBin] = None
        self.query = ""

    @property
    def name(self) -> str:
        return "notes_bin"

    @property
    def title(self) -> str:
        return "Notes Bin"

    @property
    def shortcut(self) -> tuple[str, ...]:
        return ("cmd", "alt", "z")

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        self.bin = NotesBin(host)
        host.menu_item(self.title, self.shortcut, self.toggle)
        host.menu_item("Cut to Bin", ("cmd", "alt", "x"), self.cut_to_bin)
        host.menu_item("Copy to Bin", ("cmd", "alt", "c"), self.copy_to_bin)

    def toggle(self) -> bool:
        if self.window is None or not self.window.is_open:
            self.window = self.host.html_window(self._html(), *WINDOW_SIZE, on_close=self._on_window_closed)
            self.window_visible = True
            return True
        return self.toggle_window()

    # ----- Selection ------------------------------------------------------

    def cut_to_bin(self) -> Optional[BinNote]:
        return self._take_selection(cut=True)

    def copy_to_bin(self) -> Optional[BinNote]:
        return self._take_selection(cut=False)

    def _take_selection(self, cut: bool) -> Optional[BinNote]:
        start, length = self.host.selection()
        if not length:
            log.debug("notes_bin.empty_selection")
            return None
        note = self.bin.cut_selection(start, length) if cut else self.bin.copy_selection(start, length)
        if note is not None:
            log.info("notes_bin.added", id=note.id, cut=cut)
            self._render()
        return note

    # ----- Window operations ------------------------------------------------

    def add(self, text: str) -> Optional[BinNote]:
        note = self.bin.add(text)
        self._render()
        return note

    def update(self, note_id: int, text: str) -> bool:
        changed = self.bin.update(int(note_id), text)
        self._render()
        return changed

    def remove(self, note_id: int) -> bool:
        removed = self.bin.remove(int(note_id))
        self._render()
        return removed

    def move(self, note_id: int, index: int) -> bool:
        moved = self.bin.move(int(note_id), int(index))
        self._render()
        return moved

    def search(self, query: str) -> list[BinNote]:
        self.query = query
        self._render()
        return self.bin.search(query)

    def import_file(self, path: str) -> int:
        text = Path(path).read_text(encoding="utf-8")
        added = self.bin.import_text(text)
        self._render()
        return added

    def export_file(self, path: str) -> int:
        self.host.write_file(path, self.bin.export_text())
        log.info("notes_bin.exported", path=path, notes=len(self.bin))
        return len(self.bin)

    def call(self, method: str, *args: Any) -> Any:
        """Entry point for the window's `Beat.call(method, ...)` bridge."""
        if method not in BRIDGE_METHODS:
            raise ValueError(f"Unknown bridge method: {method!r}")
        return getattr(self, method)(*args)

    def _html(self) -> str:
        return render_bin(self.bin.search(self.query), self.query)

    def _render(self) -> None:
        self.push_html(self._html())

    def _on_window_closed(self) -> None:
        self.window = None
