"""
In-memory host: a complete `Host` over a plain string buffer.

Used by the test-suite, the CLI and the preview server.  Highlights, scroll
requests, alerts and windows are recorded on the instance so callers can
inspect what a plugin asked the editor to do.  Timers and change
notifications run on an `EventLoop`; nothing fires until the loop is drained.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from beatkit.host.base import Host, HtmlWindow, WindowClosedError
from beatkit.host.store import JsonSettingsStore, atomic_write_text
from beatkit.runtime.loop import EventLoop, ScheduledTask
from beatkit.screenplay.fountain import Line, classify

log = structlog.get_logger(__name__)


def _json_copy(value: Any) -> Any:
    # Mirrors the real stores: values are serialized, never aliased.
    return json.loads(json.dumps(value))


class InMemoryWindow(HtmlWindow):
    def __init__(self, html: str, width: int, height: int, on_close: Optional[Callable[[], None]]):
        self.html = html
        self.width = width
        self.height = height
        self.scripts: list[str] = []
        self.visible = True
        self._open = True
        self._on_close = on_close

    def set_html(self, html: str) -> None:
        self._ensure_open()
        self.html = html

    def run_js(self, script: str) -> None:
        self._ensure_open()
        self.scripts.append(script)

    def show(self) -> None:
        self._ensure_open()
        self.visible = True

    def hide(self) -> None:
        self._ensure_open()
        self.visible = False

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self.visible = False
        if self._on_close is not None:
            self._on_close()

    @property
    def is_open(self) -> bool:
        return self._open

    def _ensure_open(self) -> None:
        if not self._open:
            raise WindowClosedError("window already closed")


class InMemoryHost(Host):
    def __init__(
        self,
        text: str = "",
        notepad: str = "",
        *,
        loop: Optional[EventLoop] = None,
        user_defaults: Optional[JsonSettingsStore] = None,
        document_settings: Optional[dict[str, Any]] = None,
    ):
        self.loop = loop or EventLoop()
        self._text = text
        self._notepad = notepad
        self._lines: Optional[list[Line]] = None
        self._store = user_defaults
        self._defaults: dict[str, Any] = {}
        self._document_settings: dict[str, Any] = dict(document_settings or {})
        self._text_listeners: list[Callable[[], None]] = []
        self._notepad_listeners: list[Callable[[], None]] = []

        self.highlights: dict[tuple[int, int], str] = {}
        self.reformatted: list[tuple[int, int]] = []
        self.scrolls: list[int] = []
        self.selections: list[tuple[int, int]] = []
        self.alerts: list[tuple[str, str]] = []
        self.windows: list[InMemoryWindow] = []
        self.menu: dict[str, tuple[tuple[str, ...], Callable[[], None]]] = {}

    @classmethod
    def from_files(
        cls,
        document: str | Path,
        notepad: Optional[str | Path] = None,
        settings: Optional[str | Path] = None,
        loop: Optional[EventLoop] = None,
    ) -> "InMemoryHost":
        """Open a `.fountain` file, with an optional notepad file and settings store."""
        text = Path(document).read_text(encoding="utf-8")
        notes = Path(notepad).read_text(encoding="utf-8") if notepad else ""
        store = JsonSettingsStore(settings) if settings else None
        log.info("host.opened", document=str(document), chars=len(text), notepad=bool(notepad))
        return cls(text, notes, loop=loop, user_defaults=store)

    # ----- Document -------------------------------------------------------

    def lines(self) -> list[Line]:
        if self._lines is None:
            self._lines = classify(self._text)
        return list(self._lines)

    def text(self) -> str:
        return self._text

    def replace_range(self, start: int, length: int, text: str) -> None:
        if start < 0 or length < 0 or start + length > len(self._text):
            raise ValueError(
                f"range ({start}, {length}) outside document of length {len(self._text)}"
            )
        self._text = self._text[:start] + text + self._text[start + length:]
        self._lines = None
        for listener in self._text_listeners:
            self.loop.post(listener)

    def load_text(self, text: str) -> None:
        """Replace the whole document, as an external edit would."""
        self.replace_range(0, len(self._text), text)

    # ----- Notepad -------------------------------------------------------------

    def notepad_text(self) -> str:
        return self._notepad

    def set_notepad_text(self, text: str) -> None:
        self._notepad = text
        for listener in self._notepad_listeners:
            self.loop.post(listener)

    # ----- Decoration ---------------------------------------------------------------

    def set_background_highlight(self, color: str, start: int, length: int) -> None:
        self.highlights[(start, length)] = color

    def remove_background_highlight(self, start: int, length: int) -> None:
        self.highlights.pop((start, length), None)

    def reformat_range(self, start: int, length: int) -> None:
        self.reformatted.append((start, length))
        end = start + length
        for key in [k for k in self.highlights if k[0] >= start and k[0] + k[1] <= end]:
            del self.highlights[key]

    def scroll_to(self, position: int) -> None:
        self.scrolls.append(position)

    def select_range(self, start: int, length: int) -> None:
        self.selections.append((start, length))

    def selection(self) -> tuple[int, int]:
        return self.selections[-1] if self.selections else (0, 0)

    # ----- UI -----------------------------------------------------------------------

    def html_window(
        self,
        html: str,
        width: int,
        height: int,
        on_close: Optional[Callable[[], None]] = None,
    ) -> InMemoryWindow:
        window = InMemoryWindow(html, width, height, on_close)
        self.windows.append(window)
        return window

    def alert(self, title: str, message: str) -> None:
        log.info("host.alert", title=title, message=message)
        self.alerts.append((title, message))

    def menu_item(self, title: str, shortcut: tuple[str, ...], callback: Callable[[], None]) -> None:
        self.menu[title] = (tuple(shortcut), callback)

    # ----- Persistence -----------------------------------------------------------------

    def get_user_default(self, key: str) -> Any:
        if self._store is not None:
            value = self._store.get(key)
        else:
            value = self._defaults.get(key)
        return None if value is None else _json_copy(value)

    def set_user_default(self, key: str, value: Any) -> None:
        if self._store is not None:
            self._store.set(key, _json_copy(value))
        else:
            self._defaults[key] = _json_copy(value)

    def get_document_setting(self, key: str) -> Any:
        value = self._document_settings.get(key)
        return None if value is None else _json_copy(value)

    def set_document_setting(self, key: str, value: Any) -> None:
        self._document_settings[key] = _json_copy(value)

    @property
    def document_settings(self) -> dict[str, Any]:
        return _json_copy(self._document_settings)

    # ----- Scheduling / IO ---------------------------------------------------------------

    def timer(self, delay_sec: float, callback: Callable[[], None]) -> ScheduledTask:
        return self.loop.call_later(delay_sec, callback)

    def write_file(self, path: str, content: str) -> None:
        atomic_write_text(path, content)
        log.debug("host.file_written", path=path, chars=len(content))

    # ----- Listeners -----------------------------------------------------------------------

    def on_text_change(self, callback: Callable[[], None]) -> None:
        self._text_listeners.append(callback)

    def on_notepad_change(self, callback: Callable[[], None]) -> None:
        self._notepad_listeners.append(callback)
