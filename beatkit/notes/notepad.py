"""Notepad helpers: quick capture and heading-to-heading movement."""
from __future__ import annotations

import re
from typing import Optional, Sequence

import structlog

from beatkit.host.base import Host

log = structlog.get_logger(__name__)


def capture_idea(host: Host, idea: str) -> bool:
    """Append *idea* to the end of the notepad as its own paragraph."""
    if not idea:
        return False
    host.set_notepad_text(host.notepad_text() + idea + "\n\n")
    log.info("notepad.idea_captured", chars=len(idea))
    return True


def find_heading(lines: Sequence[str], from_line: int, level: int = 1, direction: int = 1) -> Optional[int]:
    """
    Index of the next (direction=1) or previous (direction=-1) markdown
    heading of exactly *level* `#` characters, starting after *from_line*.
    """
    if level < 1:
        raise ValueError("level must be >= 1")
    if direction not in (1, -1):
        raise ValueError("direction must be 1 or -1")
    pattern = re.compile(r"^#{%d}\s*[^#]" % level)
    i = from_line + direction
    while 0 <= i < len(lines):
        if pattern.match(lines[i]):
            return i
        i += direction
    return None
