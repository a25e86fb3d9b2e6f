"""
Round-robin occurrence navigation.

The cursor outlives rescans: a tag keeps its position in the cycle even when
the index is rebuilt, and the count is reduced modulo the current number of
document occurrences on every read.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from beatkit.tags.models import Occurrence, TagIndex


class OccurrenceCursor:
    def __init__(self) -> None:
        self._positions: dict[str, int] = {}

    def __getitem__(self, tag: str) -> int:
        return self._positions.get(tag, 0)

    def advance(self, tag: str) -> None:
        self._positions[tag] = self[tag] + 1

    def ordinal(self, tag: str, total: int) -> int:
        """1-based position of the occurrence the next jump selects."""
        return (self[tag] % total) + 1 if total else 0

    def snapshot(self) -> dict[str, int]:
        return dict(self._positions)


class NavigationKind(str, Enum):
    MISSING = "missing"
    NOTEPAD_ONLY = "notepad_only"
    DOCUMENT = "document"


class Navigation(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: NavigationKind
    tag: str
    occurrence: Optional[Occurrence] = None
    ordinal: int = 0
    total: int = 0


def navigate(index: TagIndex, cursor: OccurrenceCursor, tag: str) -> Navigation:
    """Select the next document occurrence of *tag* and advance its cursor."""
    if tag not in index:
        return Navigation(kind=NavigationKind.MISSING, tag=tag)

    in_document = index.document(tag)
    if not in_document:
        return Navigation(kind=NavigationKind.NOTEPAD_ONLY, tag=tag, total=len(index.notepad(tag)))

    selected = cursor[tag] % len(in_document)
    cursor.advance(tag)
    return Navigation(
        kind=NavigationKind.DOCUMENT,
        tag=tag,
        occurrence=in_document[selected],
        ordinal=selected + 1,
        total=len(in_document),
    )
