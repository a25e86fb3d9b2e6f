"""
The one document the preview server works on.
"""
from __future__ import annotations

import structlog

from beatkit.cues.detect import Detection, detect_cues
from beatkit.host.memory import InMemoryHost
from beatkit.tags.session import KeywordsSession

log = structlog.get_logger(__name__)


class Workspace:
    """An in-memory host plus the keywords session bound to it."""

    def __init__(self, host: InMemoryHost):
        self.host = host
        self.loop = host.loop
        self.session = KeywordsSession(host, self.loop)
        host.on_text_change(self.session.on_text_change)
        host.on_notepad_change(self.session.on_notepad_change)
        self.session.refresh()

    @classmethod
    def from_config(cls) -> "Workspace":
        from beatkit.config import config
        if not config.DOCUMENT_PATH:
            raise LookupError("BEATKIT_DOCUMENT_PATH is not set")
        host = InMemoryHost.from_files(config.DOCUMENT_PATH, settings=config.SETTINGS_PATH)
        workspace = cls(host)
        log.info("workspace.opened", document=config.DOCUMENT_PATH, tags=len(workspace.session.index))
        return workspace

    def settle(self) -> int:
        """Run whatever work the last request queued on the loop."""
        return self.loop.run_pending()

    def cues(self) -> Detection:
        return detect_cues(self.host.lines())
