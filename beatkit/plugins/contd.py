"""
Menu commands that add or clean (CONT'D) extensions on character cues.
"""
from __future__ import annotations

import structlog

from beatkit.plugins.base import EditorPlugin
from beatkit.screenplay.contd import add_contds, apply_edits, clean_contds

log = structlog.get_logger(__name__)


class AddContdsPlugin(EditorPlugin):
    @property
    def name(self) -> str:
        return "add_contds"

    @property
    def title(self) -> str:
        return "Add (CONT'D)s"

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        host.menu_item(self.title, self.shortcut, self.run)

    def run(self) -> int:
        from beatkit.config import config
        edits = add_contds(self.host.lines(), label=config.CONTD_LABEL)
        applied = apply_edits(self.host, edits)
        log.info("contd.added", edits=applied)
        return applied


class CleanContdsPlugin(EditorPlugin):
    """Strict mode drops invalid (CONT'D)s; lenient mode only fixes their format."""

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict

    @property
    def name(self) -> str:
        return "clean_contds"

    @property
    def title(self) -> str:
        return "Clean (CONT'D)'s"

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        host.menu_item(self.title, self.shortcut, self.run)

    def run(self) -> int:
        from beatkit.config import config
        edits = clean_contds(self.host.lines(), strict=self.strict, label=config.CONTD_LABEL)
        applied = apply_edits(self.host, edits)
        log.info("contd.cleaned", edits=applied, strict=self.strict)
        return applied
