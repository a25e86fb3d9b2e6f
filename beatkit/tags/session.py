"""
KeywordsSession: the per-document controller behind the keywords panel.

Owns the tag index, the flat occurrence list, navigation cursors,
preferences, the notes list and the panel's UI state.  Every method runs on
the single event loop; text and notepad changes are debounced into one
`refresh` under a shared key.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

import structlog

from beatkit.host.base import Host, TimerHandle
from beatkit.notes.grouping import collect_entries
from beatkit.runtime.loop import EventLoop
from beatkit.tags.colors import ContrastParams, ensure_contrast, normalize_hex
from beatkit.tags.models import Occurrence, TagIndex
from beatkit.tags.navigator import Navigation, NavigationKind, OccurrenceCursor, navigate
from beatkit.tags.preferences import ColorPreferences, DismissedEntries, FavoriteTags, ThemePreference
from beatkit.tags.scanner import scan
from beatkit.tags.view import ColorPicker, KeywordsView, build_view

log = structlog.get_logger(__name__)

REFRESH_KEY = "keywords.refresh"

# Methods the panel may invoke through the call bridge.
BRIDGE_METHODS = frozenset({
    "refresh",
    "navigate",
    "pill_click",
    "pill_mouse_leave",
    "open_color_picker",
    "preview_tag_color",
    "finalize_tag_color",
    "add_favorite",
    "remove_favorite",
    "toggle_theme",
    "toggle_dismissed",
    "set_hide_dismissed",
    "goto_entry",
})


def reapply_all(
    host: Host, occurrences: Iterable[Occurrence], color_for: Callable[[str], str]
) -> list[Occurrence]:
    """Re-resolve every occurrence's color and redo its document highlight."""
    updated: list[Occurrence] = []
    for occ in occurrences:
        color = color_for(occ.tag)
        if occ.in_document:
            host.remove_background_highlight(occ.absolute_position, occ.match_length)
            host.set_background_highlight(color, occ.absolute_position, occ.match_length)
        updated.append(occ if occ.color == color else occ.model_copy(update={"color": color}))
    return updated


class KeywordsSession:
    def __init__(self, host: Host, loop: EventLoop, params: Optional[ContrastParams] = None):
        self.host = host
        self.loop = loop
        self.params = params

        self.colors = ColorPreferences(host)
        self.favorites = FavoriteTags(host)
        self.dismissed = DismissedEntries(host)
        self.theme = ThemePreference(host)

        self.index = TagIndex()
        self.occurrences: list[Occurrence] = []
        self.entries: list = []
        self.cursor = OccurrenceCursor()
        self.active_tag: Optional[str] = None
        self.picker: Optional[ColorPicker] = None
        self.closed = False

        self._preview: dict[str, str] = {}
        self._timers: list[TimerHandle] = []
        self._flashing: Optional[tuple[str, int, int]] = None
        self._subscribers: list[Callable[[KeywordsView], None]] = []

    # ----- Colors ---------------------------------------------------------

    def color_for(self, tag: str) -> str:
        """The user's color for *tag* (an unsaved picker preview wins)."""
        return self._preview.get(tag) or self.colors.resolve(tag)

    def highlight_color(self, tag: str) -> str:
        return ensure_contrast(self.color_for(tag), self.theme.foreground(), self.params)

    # ----- Refresh ----------------------------------------------------------

    def subscribe(self, callback: Callable[[KeywordsView], None]) -> None:
        self._subscribers.append(callback)

    def on_text_change(self) -> None:
        from beatkit.config import config
        self.loop.debounce(REFRESH_KEY, config.DEBOUNCE_SEC, self.refresh)

    on_notepad_change = on_text_change

    def refresh(self) -> bool:
        """Rescan document and notepad.  On failure the previous state stays."""
        if self.closed:
            return False
        try:
            lines = self.host.lines()
            notepad = self.host.notepad_text()
            result = scan(lines, notepad, self.highlight_color)
            entries = collect_entries(lines, notepad)
        except Exception as exc:
            log.error("keywords.refresh_failed", error=str(exc), exc_type=type(exc).__name__)
            return False

        self._cancel_flash()
        self._remove_highlights()
        self.index = result.index
        self.occurrences = result.occurrences
        for occ in result.document_occurrences:
            self.host.set_background_highlight(occ.color, occ.absolute_position, occ.match_length)

        self.favorites.prune(self.index)
        self.entries = entries
        if self.picker is not None and self.picker.tag not in self.index:
            self.picker = None
        if self.active_tag is not None and self.active_tag not in self.index:
            self.active_tag = None

        log.info("keywords.refreshed", tags=len(self.index), occurrences=len(self.occurrences),
                 entries=len(entries))
        self._emit()
        return True

    # ----- Navigation -------------------------------------------------------------

    def navigate(self, tag: str) -> Navigation:
        outcome = navigate(self.index, self.cursor, tag)
        if outcome.kind is NavigationKind.MISSING:
            log.debug("keywords.navigate_unknown", tag=tag)
            return outcome
        if outcome.kind is NavigationKind.NOTEPAD_ONLY:
            self.host.alert("Notepad only", f"'{tag}' only appears in the notepad.")
            self._emit()
            return outcome

        occ = outcome.occurrence
        self.host.scroll_to(occ.absolute_position)
        self._cancel_flash(restore=True)
        from beatkit.config import config
        self._flashing = (occ.color, occ.absolute_position, occ.match_length)
        self._flash(occ.color, occ.absolute_position, occ.match_length, config.FLASH_CYCLES)
        self._emit()
        return outcome

    def goto_entry(self, key: str) -> bool:
        """Scroll to the note entry with *key*.  Notepad entries only get a notice."""
        entry = next((e for e in self.entries if e.key == key), None)
        if entry is None:
            log.debug("keywords.goto_unknown_entry", key=key)
            return False
        if entry.position < 0:
            self.host.alert("Notepad only", "This note only appears in the notepad.")
            return False
        self.host.scroll_to(entry.position)
        return True

    def _flash(self, color: str, start: int, length: int, cycles: int) -> None:
        """Alternate highlight / plain for *cycles* rounds, ending highlighted."""
        if cycles <= 0 or self.closed:
            return
        self.host.set_background_highlight(color, start, length)
        if cycles == 1:
            self._flashing = None
            return
        from beatkit.config import config
        interval = config.FLASH_INTERVAL_SEC

        def off() -> None:
            if self.closed:
                return
            self.host.reformat_range(start, length)
            self._schedule(interval, lambda: self._flash(color, start, length, cycles - 1))

        self._schedule(interval, off)

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._timers = [t for t in self._timers if t.pending]
        self._timers.append(self.host.timer(delay, callback))

    def _cancel_flash(self, restore: bool = False) -> None:
        """Stop the running flash.  With *restore*, leave its span highlighted."""
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        if restore and self._flashing is not None:
            self.host.set_background_highlight(*self._flashing)
        self._flashing = None

    # ----- Panel interactions -------------------------------------------------------

    def pill_click(self, tag: str) -> Navigation:
        self.active_tag = tag
        self._emit()
        return self.navigate(tag)

    def pill_mouse_leave(self, tag: str) -> None:
        if self.active_tag == tag:
            self.active_tag = None
            self._emit()

    def open_color_picker(self, tag: str, x: int = 0, y: int = 0) -> None:
        if tag not in self.index:
            return
        self.picker = ColorPicker(tag=tag, x=int(x), y=int(y), color=self.color_for(tag))
        self._emit()

    def preview_tag_color(self, color: str) -> None:
        if self.picker is None:
            return
        self._preview[self.picker.tag] = normalize_hex(color)
        self._reapply()

    def finalize_tag_color(self, color: str) -> None:
        if self.picker is None:
            return
        tag = self.picker.tag
        self.colors.set(tag, color)
        self._preview.pop(tag, None)
        self.picker = None
        self._reapply()
        self._emit()

    def add_favorite(self, tag: str) -> None:
        if tag in self.index and self.favorites.add(tag):
            self._emit()

    def remove_favorite(self, tag: str) -> None:
        if self.favorites.remove(tag):
            self._emit()

    def toggle_theme(self) -> bool:
        dark = self.theme.toggle()
        self._reapply()
        self._emit()
        return dark

    def toggle_dismissed(self, key: str) -> bool:
        dismissed = self.dismissed.toggle(key)
        self._emit()
        return dismissed

    def set_hide_dismissed(self, hide: bool) -> None:
        self.dismissed.hide = hide
        self._emit()

    def dispatch(self, method: str, args: Iterable[Any] = ()) -> Any:
        """Call-bridge entry point; only whitelisted methods are reachable."""
        if method not in BRIDGE_METHODS:
            raise ValueError(f"Unknown bridge method: {method!r}")
        return getattr(self, method)(*args)

    def close(self) -> None:
        self._cancel_flash()
        self._remove_highlights()
        self.picker = None
        self.closed = True
        log.info("keywords.closed")

    # ----- View ----------------------------------------------------------------------

    def render_state(self) -> KeywordsView:
        return build_view(
            index=self.index,
            cursor=self.cursor,
            favorites=self.favorites,
            color_for=self.color_for,
            theme=self.theme.name,
            active_tag=self.active_tag,
            picker=self.picker,
            entries=self.entries,
            dismissed=lambda key: key in self.dismissed,
            hide_dismissed=self.dismissed.hide,
        )

    # ----- Internals -------------------------------------------------------------------

    def _reapply(self) -> None:
        self._cancel_flash()
        self.occurrences = reapply_all(self.host, self.occurrences, self.highlight_color)
        self.index = TagIndex(self.occurrences)

    def _remove_highlights(self) -> None:
        for occ in self.occurrences:
            if occ.in_document:
                self.host.remove_background_highlight(occ.absolute_position, occ.match_length)

    def _emit(self) -> None:
        if not self._subscribers:
            return
        view = self.render_state()
        for callback in self._subscribers:
            callback(view)
