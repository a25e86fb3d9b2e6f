"""
Markdown import.

Converts a Markdown file into Fountain: single-line `%%comments%%` become
notes, comment blocks spanning lines become omissions, and `__bold__` /
`_italic_` become Fountain emphasis.  Everything else passes through.
"""
from __future__ import annotations

import re

import structlog

log = structlog.get_logger(__name__)

_NOTE_RE = re.compile(r"%%(.*?)%%")
_OMIT_RE = re.compile(r"%%(.*?)%%", re.DOTALL)
_BOLD_RE = re.compile(r"__(.+?)__")
_ITALIC_RE = re.compile(r"(?<![\w*])_(.+?)_(?![\w*])")


def import_markdown(text: str) -> str:
    # Notes first, so only multi-line blocks are left for omissions.
    converted = _NOTE_RE.sub(r"[[\1]]", text)
    converted = _OMIT_RE.sub(r"/*\1*/", converted)
    converted = _BOLD_RE.sub(r"**\1**", converted)
    converted = _ITALIC_RE.sub(r"*\1*", converted)
    log.debug("markdown.imported", chars_in=len(text), chars_out=len(converted))
    return converted
