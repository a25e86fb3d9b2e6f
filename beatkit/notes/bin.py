"""
Notes bin: a document-scoped list of text snippets kept beside the script.

Snippets come from the current selection (cut or copy), from `.txt`
imports, or are added directly.  The bin is written back to the document
settings on every change.

Text files hold one snippet per block, blocks separated by a line holding
only `---`.  A file without separators is split on blank lines instead.
"""
from __future__ import annotations

import re
from typing import Iterator, Optional

import structlog
from pydantic import BaseModel, ConfigDict, TypeAdapter

from beatkit.host.base import Host
from beatkit.tags.preferences import _validated

log = structlog.get_logger(__name__)

SEPARATOR = "---"

_SEPARATOR_RE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_BLANK_RE = re.compile(r"\n[ \t]*\n")


class BinNote(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str


_NOTES = TypeAdapter(list[BinNote])


def split_snippets(text: str) -> list[str]:
    """Snippets in a `.txt` export, blanks dropped."""
    pattern = _SEPARATOR_RE if _SEPARATOR_RE.search(text) else _BLANK_RE
    return [chunk.strip() for chunk in pattern.split(text) if chunk.strip()]


def join_snippets(snippets: list[str]) -> str:
    if not snippets:
        return ""
    return f"\n{SEPARATOR}\n".join(snippets) + "\n"


class NotesBin:
    KEY = "notesBin"

    def __init__(self, host: Host):
        self._host = host
        self._notes: list[BinNote] = _validated(host.get_document_setting(self.KEY), _NOTES, [], self.KEY)

    def __iter__(self) -> Iterator[BinNote]:
        return iter(self._notes)

    def __len__(self) -> int:
        return len(self._notes)

    def get(self, note_id: int) -> Optional[BinNote]:
        return next((n for n in self._notes if n.id == note_id), None)

    def add(self, text: str) -> Optional[BinNote]:
        """Append *text* as a new snippet.  Blank text is ignored."""
        text = text.strip()
        if not text:
            return None
        note = BinNote(id=max((n.id for n in self._notes), default=0) + 1, text=text)
        self._notes.append(note)
        self._flush()
        return note

    def update(self, note_id: int, text: str) -> bool:
        for i, note in enumerate(self._notes):
            if note.id == note_id:
                self._notes[i] = note.model_copy(update={"text": text.strip()})
                self._flush()
                return True
        return False

    def remove(self, note_id: int) -> bool:
        kept = [n for n in self._notes if n.id != note_id]
        if len(kept) == len(self._notes):
            return False
        self._notes = kept
        self._flush()
        return True

    def move(self, note_id: int, index: int) -> bool:
        note = self.get(note_id)
        if note is None:
            return False
        self._notes.remove(note)
        self._notes.insert(max(0, min(index, len(self._notes))), note)
        self._flush()
        return True

    def search(self, query: str) -> list[BinNote]:
        """Snippets containing *query*, case-insensitively.  Empty query matches all."""
        needle = query.strip().lower()
        return [n for n in self._notes if needle in n.text.lower()]

    # ----- Selection --------------------------------------------------------

    def copy_selection(self, start: int, length: int) -> Optional[BinNote]:
        text = self._host.text()
        if start < 0 or length < 0 or start + length > len(text):
            raise ValueError(f"selection ({start}, {length}) outside document of length {len(text)}")
        return self.add(text[start:start + length])

    def cut_selection(self, start: int, length: int) -> Optional[BinNote]:
        """Move the selected text into the bin.  Nothing is cut when it is blank."""
        note = self.copy_selection(start, length)
        if note is not None:
            self._host.replace_range(start, length, "")
        return note

    # ----- Text files -------------------------------------------------------

    def import_text(self, text: str) -> int:
        added = sum(1 for snippet in split_snippets(text) if self.add(snippet) is not None)
        log.info("notes_bin.imported", added=added)
        return added

    def export_text(self) -> str:
        return join_snippets([n.text for n in self._notes])

    def _flush(self) -> None:
        self._host.set_document_setting(self.KEY, _NOTES.dump_python(self._notes, mode="json"))
