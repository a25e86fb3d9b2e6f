"""
Tag index data model.

An `Occurrence` is one located tag mention.  Document occurrences carry the
line index and absolute offset of the match; notepad occurrences carry the
`NOTEPAD_LINE` / `NOTEPAD_POSITION` sentinels plus an offset into the notepad.
The whole index is discarded and rebuilt on every scan.
"""
from __future__ import annotations

from typing import Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator

NOTEPAD_LINE = -1
NOTEPAD_POSITION = -1


class Occurrence(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    source_line_index: int = Field(ge=NOTEPAD_LINE)
    absolute_position: int = Field(ge=NOTEPAD_POSITION)
    match_length: int = Field(gt=0)
    color: str
    is_special: bool = False
    notepad_offset: int = -1

    @model_validator(mode="after")
    def _check_tag(self) -> "Occurrence":
        if not self.tag or self.tag != self.tag.lower():
            raise ValueError(f"tag must be non-empty lower-case, got {self.tag!r}")
        return self

    @property
    def in_document(self) -> bool:
        return self.source_line_index != NOTEPAD_LINE

    @property
    def span(self) -> tuple[int, int]:
        return (self.absolute_position, self.match_length)


class TagIndex:
    """Ordered tag -> occurrences mapping.  First-seen tag order, scan order within a tag."""

    def __init__(self, occurrences: Iterable[Occurrence] = ()) -> None:
        self._by_tag: dict[str, list[Occurrence]] = {}
        for occ in occurrences:
            self.add(occ)

    def add(self, occurrence: Occurrence) -> None:
        self._by_tag.setdefault(occurrence.tag, []).append(occurrence)

    def __contains__(self, tag: object) -> bool:
        return tag in self._by_tag

    def __len__(self) -> int:
        return len(self._by_tag)

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_tag)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagIndex):
            return NotImplemented
        return self._by_tag == other._by_tag

    def get(self, tag: str) -> list[Occurrence]:
        return list(self._by_tag.get(tag, ()))

    def names(self) -> list[str]:
        return list(self._by_tag)

    def document(self, tag: str) -> list[Occurrence]:
        return [o for o in self._by_tag.get(tag, ()) if o.in_document]

    def notepad(self, tag: str) -> list[Occurrence]:
        return [o for o in self._by_tag.get(tag, ()) if not o.in_document]

    def counts(self) -> dict[str, int]:
        return {tag: len(occs) for tag, occs in self._by_tag.items()}

    def is_special(self, tag: str) -> bool:
        return any(o.is_special for o in self._by_tag.get(tag, ()))

    def occurrences(self) -> list[Occurrence]:
        return [o for occs in self._by_tag.values() for o in occs]

    def to_dict(self) -> dict[str, list[dict]]:
        return {tag: [o.model_dump() for o in occs] for tag, occs in self._by_tag.items()}


class ScanResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    index: TagIndex
    occurrences: list[Occurrence]

    @property
    def document_occurrences(self) -> list[Occurrence]:
        return [o for o in self.occurrences if o.in_document]
