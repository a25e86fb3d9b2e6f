"""
Note grouping for the notes list.

Three sources feed the list:
  * the document outside the BONEYARD: inline notes, synopsis lines and
    `/* ... */` omits, in document order;
  * the BONEYARD region, grouped structurally by section header / scene heading;
  * the notepad, grouped by `---` delimiters.
"""
from __future__ import annotations

import re
from typing import Optional, Sequence

import structlog

from beatkit.notes.entries import (
    BoneyardEntry,
    KeyFactory,
    NoteEntry,
    NotepadEntry,
    OmittedEntry,
    SynopsisEntry,
    escape,
)
from beatkit.screenplay.fountain import Line, is_scene_heading
from beatkit.tags.scanner import NOTE_RE

log = structlog.get_logger(__name__)

BONEYARD_RE = re.compile(r"^\s*#\s*BONEYARD\b", re.IGNORECASE)
OMIT_RE = re.compile(r"/\*(.*?)\*/", re.DOTALL)
DELIMITER = "---"


def group_delimited(text: str, keys: Optional[KeyFactory] = None) -> list[NotepadEntry]:
    """
    Rule A.  A `---` line opens or closes a group; everything between a pair
    is one entry.  Outside a group, consecutive non-blank lines form one entry.
    An unterminated group runs to the end of the text.
    """
    keys = keys or KeyFactory()
    entries: list[NotepadEntry] = []
    buffer: list[str] = []
    start = 0
    in_group = False
    offset = 0

    def flush() -> None:
        content = "\n".join(buffer).strip()
        if content:
            entries.append(NotepadEntry(
                content=escape(content), position=-1, offset=start, key=keys("notepad", content),
            ))
        buffer.clear()

    for raw in text.split("\n"):
        stripped = raw.strip()
        if stripped == DELIMITER:
            flush()
            in_group = not in_group
        elif in_group:
            if not buffer:
                start = offset
            buffer.append(raw)
        elif stripped:
            if not buffer:
                start = offset
            buffer.append(raw)
        else:
            flush()
        offset += len(raw) + 1

    flush()
    return entries


def group_boneyard(lines: Sequence[Line], keys: Optional[KeyFactory] = None) -> list[BoneyardEntry]:
    """
    Rule B.  A section header (`#...`) absorbs every following line, scene
    headings included, until the next header.  With no header active, a
    scene heading absorbs lines until the next heading or header.  Text
    before the first header/heading is split into paragraphs.
    """
    keys = keys or KeyFactory()
    entries: list[BoneyardEntry] = []
    group: list[Line] = []
    mode: Optional[str] = None      # "section" | "heading" | None (loose text)

    def flush() -> None:
        content = "\n".join(l.text for l in group).strip()
        if content:
            header = group[0].text.strip() if mode else ""
            entries.append(BoneyardEntry(
                content=escape(content),
                position=group[0].position,
                header=escape(header),
                key=keys("boneyard", content),
            ))
        group.clear()

    for line in lines:
        stripped = line.text.strip()
        if stripped.startswith("#"):
            flush()
            mode = "section"
            group.append(line)
        elif mode != "section" and is_scene_heading(stripped):
            flush()
            mode = "heading"
            group.append(line)
        elif mode is not None:
            group.append(line)
        elif stripped:
            group.append(line)
        else:
            flush()

    flush()
    return entries


def find_boneyard(lines: Sequence[Line]) -> Optional[int]:
    """Index of the BONEYARD heading line, if the document has one."""
    for i, line in enumerate(lines):
        if BONEYARD_RE.match(line.text):
            return i
    return None


def collect_document_entries(
    lines: Sequence[Line], keys: Optional[KeyFactory] = None
) -> list[NoteEntry | SynopsisEntry | OmittedEntry]:
    keys = keys or KeyFactory()
    found: list[NoteEntry | SynopsisEntry | OmittedEntry] = []

    for i, line in enumerate(lines):
        for m in NOTE_RE.finditer(line.text):
            content = m.group(1).strip()
            if content:
                found.append(NoteEntry(
                    content=escape(content), position=line.position + m.start(),
                    line_index=i, key=keys("note", content),
                ))
        stripped = line.text.strip()
        if stripped.startswith("=") and not stripped.startswith("==="):
            content = stripped[1:].strip()
            if content:
                found.append(SynopsisEntry(
                    content=escape(content), position=line.position,
                    line_index=i, key=keys("synopsis", content),
                ))

    if lines:
        base = lines[0].position
        text = "\n".join(l.text for l in lines)
        for m in OMIT_RE.finditer(text):
            content = m.group(1).strip()
            if content:
                found.append(OmittedEntry(
                    content=escape(content), position=base + m.start(), key=keys("omitted", content),
                ))

    found.sort(key=lambda e: e.position)
    return found


def collect_entries(lines: Sequence[Line], notepad: Optional[str] = "") -> list:
    """Every entry of the notes list: document, then BONEYARD, then notepad."""
    keys = KeyFactory()
    lines = list(lines)
    boneyard_at = find_boneyard(lines)
    outside = lines if boneyard_at is None else lines[:boneyard_at]

    entries: list = list(collect_document_entries(outside, keys))
    if boneyard_at is not None:
        entries.extend(group_boneyard(lines[boneyard_at + 1:], keys))
    entries.extend(group_delimited(notepad or "", keys))

    log.debug("notes.collected", entries=len(entries), boneyard=boneyard_at is not None)
    return entries
