"""
Elements of Style: highlights prose worth a second look and steps through it.
"""
from __future__ import annotations

from typing import Optional

import structlog

from beatkit.plugins.base import EditorPlugin
from beatkit.style.lint import Category, StylePreferences, StyleToken, TokenCursor, lint

log = structlog.get_logger(__name__)

REFRESH_KEY = "style.refresh"


class ElementsOfStylePlugin(EditorPlugin):
    def __init__(self) -> None:
        self.cursor = TokenCursor()
        self.prefs: Optional[StylePreferences] = None
        self._highlighted: list[StyleToken] = []

    @property
    def name(self) -> str:
        return "elements_of_style"

    @property
    def title(self) -> str:
        return "Elements of Style"

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        self.prefs = StylePreferences(host)
        host.menu_item(self.title, self.shortcut, self.refresh)
        host.on_text_change(self._on_change)
        self.refresh()

    def deactivate(self) -> None:
        self._clear()
        super().deactivate()

    def _on_change(self) -> None:
        from beatkit.config import config
        self.loop.debounce(REFRESH_KEY, config.DEBOUNCE_SEC, self.refresh)

    def refresh(self) -> list[StyleToken]:
        tokens = lint(self.host.lines(), self.prefs.enabled())
        self._clear()
        for token in tokens:
            self.host.set_background_highlight(token.color, token.position, token.length)
        self._highlighted = tokens
        self.cursor.reset(tokens)
        log.info("style.refreshed", tokens=len(tokens))
        return tokens

    def toggle_category(self, category: Category | str) -> bool:
        shown = self.prefs.toggle(category)
        self.refresh()
        return shown

    def next(self) -> Optional[StyleToken]:
        return self._go(self.cursor.next())

    def previous(self) -> Optional[StyleToken]:
        return self._go(self.cursor.previous())

    def _go(self, token: Optional[StyleToken]) -> Optional[StyleToken]:
        if token is not None:
            self.host.scroll_to(token.position)
            self.host.select_range(token.position, token.length)
        return token

    def _clear(self) -> None:
        if self.host is None:
            return
        for token in self._highlighted:
            self.host.remove_background_highlight(token.position, token.length)
        self._highlighted = []
