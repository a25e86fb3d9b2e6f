"""
QMan: technical cue manager for stage scripts.

Detects `TYPE: description` cues, highlights them by type preference,
renumbers them, toggles their visibility in the printed script and exports
them as CSV, HTML or a QLab AppleScript.
"""
from __future__ import annotations

import structlog

from beatkit.cues.detect import ALL, Detection, detect_cues, highlight_spans, renumber_edits, visibility_edits
from beatkit.cues.export import export_cues
from beatkit.cues.preferences import CuePreferences, load_cue_preferences, save_cue_preferences
from beatkit.plugins.base import EditorPlugin
from beatkit.screenplay.contd import apply_edits

log = structlog.get_logger(__name__)

REFRESH_KEY = "qman.refresh"


class CueManagerPlugin(EditorPlugin):
    def __init__(self) -> None:
        self.detection = Detection(types=[], cues=[])
        self.prefs = CuePreferences()
        self._spans: list[tuple[str, int, int]] = []

    @property
    def name(self) -> str:
        return "qman"

    @property
    def title(self) -> str:
        return "QMan"

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        self.prefs = load_cue_preferences(host)
        host.menu_item(self.title, self.shortcut, self.refresh)
        host.on_text_change(self._on_change)
        self.refresh()

    def deactivate(self) -> None:
        self._clear_highlights()
        super().deactivate()

    def _on_change(self) -> None:
        from beatkit.config import config
        self.loop.debounce(REFRESH_KEY, config.DEBOUNCE_SEC, self.refresh)

    def refresh(self) -> Detection:
        lines = self.host.lines()
        self.detection = detect_cues(lines)
        if self.prefs.ensure_types(self.detection.types):
            save_cue_preferences(self.host, self.prefs)
        self._clear_highlights()
        self._spans = highlight_spans(lines, self.detection.cues, self.prefs)
        for color, start, length in self._spans:
            self.host.set_background_highlight(color, start, length)
        log.info("qman.refreshed", cues=len(self.detection.cues), types=len(self.detection.types))
        return self.detection

    def renumber(self, filter_type: str = ALL) -> int:
        edits = renumber_edits(self.host.lines(), self.detection.cues, filter_type)
        applied = apply_edits(self.host, edits)
        log.info("qman.renumbered", filter_type=filter_type, edits=applied)
        self.refresh()
        return applied

    def export(self, fmt: str, path: str, filter_type: str = ALL) -> bool:
        return export_cues(self.host, self.detection.cues, fmt, path, filter_type)

    def apply_preferences(self, new: CuePreferences) -> int:
        """Persist *new* and wrap/unwrap cues whose hide flag flipped."""
        edits = visibility_edits(self.host.lines(), self.prefs, new)
        self.prefs = new
        save_cue_preferences(self.host, new)
        applied = apply_edits(self.host, edits)
        self.refresh()
        return applied

    def cue_types(self, include_all: bool = True) -> list[str]:
        return ([ALL] if include_all else []) + list(self.detection.types)

    def _clear_highlights(self) -> None:
        if self.host is None:
            return
        for _, start, length in self._spans:
            self.host.remove_background_highlight(start, length)
        self._spans = []
