"""
Tag scanner: document lines + notepad -> ScanResult.

Tokenizing is one pass per line producing typed spans: a bracket-note span
for every `[[ ... ]]`, then the marker spans (`#tag`, `@tag`) inside it, then
at most one special span (`beat: ...` / `storyline: ...`).  A special span
that lands on exactly the same range as a marker span is never emitted, so
each `(position, length)` reaches the index once.

The scanner is pure; applying highlights is the caller's job.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable, Iterator, NamedTuple, Optional

import regex
import structlog

from beatkit.screenplay.fountain import Line
from beatkit.tags.models import NOTEPAD_LINE, NOTEPAD_POSITION, Occurrence, ScanResult, TagIndex

log = structlog.get_logger(__name__)

NOTE_RE = regex.compile(r"\[\[(.*?)\]\]")
MARKER_RE = regex.compile(r"[#@]([\p{L}\p{N}\p{M}\p{Emoji_Presentation}]+)")
SPECIAL_RE = regex.compile(r"^\s*(?:beat|storyline)\b\s*(?::\s*|\s+)(\S.*?)\s*$", regex.IGNORECASE)
HEX_COLOR_RE = regex.compile(r"^[0-9a-fA-F]{6}$")


class SpanKind(str, Enum):
    NOTE = "note"
    MARKER = "marker"
    SPECIAL = "special"


class Span(NamedTuple):
    kind: SpanKind
    start: int          # Offset relative to whatever text was tokenized
    length: int
    value: str          # Note content, or the normalised tag


def _marker_spans(text: str, base: int) -> Iterator[Span]:
    for m in MARKER_RE.finditer(text):
        ident = m.group(1)
        if HEX_COLOR_RE.match(ident):
            continue
        yield Span(SpanKind.MARKER, base + m.start(), len(m.group(0)), ident.lower())


def tokenize(text: str) -> Iterator[Span]:
    """Yield the typed spans of one document line, offsets relative to the line."""
    for note in NOTE_RE.finditer(text):
        content = note.group(1)
        content_start = note.start(1)
        yield Span(SpanKind.NOTE, note.start(), note.end() - note.start(), content)

        taken: set[tuple[int, int]] = set()
        for span in _marker_spans(content, content_start):
            taken.add((span.start, span.length))
            yield span

        special = SPECIAL_RE.match(content)
        if special:
            start = content_start + special.start(1)
            length = len(special.group(1))
            if (start, length) not in taken:
                yield Span(SpanKind.SPECIAL, start, length, special.group(1).lower())


def tokenize_notepad(text: str) -> Iterator[Span]:
    """Marker spans over free text; no brackets needed."""
    return _marker_spans(text, 0)


def _default_color(tag: str) -> str:
    from beatkit.config import config
    return config.DEFAULT_TAG_COLOR


def scan(
    lines: Iterable[Line],
    notepad: Optional[str] = "",
    resolve_color: Optional[Callable[[str], str]] = None,
) -> ScanResult:
    resolve = resolve_color or _default_color
    index = TagIndex()
    occurrences: list[Occurrence] = []

    for line_index, line in enumerate(lines):
        for span in tokenize(line.text):
            if span.kind is SpanKind.NOTE:
                continue
            occ = Occurrence(
                tag=span.value,
                source_line_index=line_index,
                absolute_position=line.position + span.start,
                match_length=span.length,
                color=resolve(span.value),
                is_special=span.kind is SpanKind.SPECIAL,
            )
            index.add(occ)
            occurrences.append(occ)

    for span in tokenize_notepad(notepad or ""):
        occ = Occurrence(
            tag=span.value,
            source_line_index=NOTEPAD_LINE,
            absolute_position=NOTEPAD_POSITION,
            match_length=span.length,
            color=resolve(span.value),
            notepad_offset=span.start,
        )
        index.add(occ)
        occurrences.append(occ)

    log.debug("scanner.scan_done", tags=len(index), occurrences=len(occurrences))
    return ScanResult(index=index, occurrences=occurrences)
