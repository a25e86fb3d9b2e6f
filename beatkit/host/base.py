"""
Host boundary: the editor services every plugin consumes.

The real editor owns the document, the text-decoration layer, the web-view
windows and the persistence stores.  Plugins only ever talk to it through
this interface, so the same plugin code runs against the in-memory host in
tests and the CLI.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol

from beatkit.screenplay.fountain import Line


class WindowClosedError(RuntimeError):
    """Raised when a bridge call targets a window the user already closed."""


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    @property
    def pending(self) -> bool: ...


class HtmlWindow(ABC):
    """A host web-view panel.  Calls are one-way; nothing is acknowledged."""

    @abstractmethod
    def set_html(self, html: str) -> None: ...

    @abstractmethod
    def run_js(self, script: str) -> None: ...

    @abstractmethod
    def show(self) -> None: ...

    @abstractmethod
    def hide(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...


class Host(ABC):
    # ----- Document -------------------------------------------------------

    @abstractmethod
    def lines(self) -> list[Line]:
        """Current document lines, in order, with absolute start offsets."""

    @abstractmethod
    def text(self) -> str: ...

    @abstractmethod
    def replace_range(self, start: int, length: int, text: str) -> None: ...

    def add_string(self, text: str, position: int) -> None:
        self.replace_range(position, 0, text)

    # ----- Notepad (auxiliary buffer) ---------------------------------------

    @abstractmethod
    def notepad_text(self) -> str: ...

    @abstractmethod
    def set_notepad_text(self, text: str) -> None: ...

    # ----- Decoration ---------------------------------------------------------

    @abstractmethod
    def set_background_highlight(self, color: str, start: int, length: int) -> None: ...

    @abstractmethod
    def remove_background_highlight(self, start: int, length: int) -> None: ...

    @abstractmethod
    def reformat_range(self, start: int, length: int) -> None:
        """Re-render a range with its default styling (drops transient highlights)."""

    @abstractmethod
    def scroll_to(self, position: int) -> None: ...

    def select_range(self, start: int, length: int) -> None:
        """Optional; hosts without a selection model ignore it."""

    def selection(self) -> tuple[int, int]:
        """Current `(start, length)` selection; `(0, 0)` without a selection model."""
        return (0, 0)

    # ----- UI -----------------------------------------------------------------

    @abstractmethod
    def html_window(
        self,
        html: str,
        width: int,
        height: int,
        on_close: Optional[Callable[[], None]] = None,
    ) -> HtmlWindow: ...

    @abstractmethod
    def alert(self, title: str, message: str) -> None: ...

    @abstractmethod
    def menu_item(self, title: str, shortcut: tuple[str, ...], callback: Callable[[], None]) -> None: ...

    # ----- Persistence ----------------------------------------------------------

    @abstractmethod
    def get_user_default(self, key: str) -> Any: ...

    @abstractmethod
    def set_user_default(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def get_document_setting(self, key: str) -> Any: ...

    @abstractmethod
    def set_document_setting(self, key: str, value: Any) -> None: ...

    # ----- Scheduling / IO --------------------------------------------------------

    @abstractmethod
    def timer(self, delay_sec: float, callback: Callable[[], None]) -> TimerHandle: ...

    @abstractmethod
    def write_file(self, path: str, content: str) -> None: ...

    # ----- Listeners ----------------------------------------------------------------

    @abstractmethod
    def on_text_change(self, callback: Callable[[], None]) -> None: ...

    @abstractmethod
    def on_notepad_change(self, callback: Callable[[], None]) -> None: ...
