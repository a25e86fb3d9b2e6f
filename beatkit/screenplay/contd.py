"""
CONT'D extension management for character cues.

`add_contds` only inserts missing extensions.  `clean_contds` is the
two-pass tidy-up: the first pass decides a replacement for every cue, the
second pass fixes up cues that sit on the left of a dual-dialogue pair.
Both return `Edit`s; nothing touches the document until `apply_edits`.
"""
from __future__ import annotations

from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from beatkit.screenplay.fountain import Line, LineType

log = structlog.get_logger(__name__)


class Edit(BaseModel):
    """Replace `length` characters at `position` with `text` (length 0 = insert)."""
    model_config = ConfigDict(frozen=True)

    position: int = Field(ge=0)
    length: int = Field(default=0, ge=0)
    text: str


def add_contds(lines: Iterable[Line], label: str = "CONT'D") -> list[Edit]:
    extension = f"({label})"
    previous: Optional[str] = None
    edits: list[Edit] = []

    for line in lines:
        if line.type == LineType.HEADING:
            previous = None
        if not line.is_any_character():
            continue
        name = line.character_name()
        if name is None:
            continue
        if previous != name:
            previous = name
            continue
        if extension in line.text or "(CONT'D)" in line.text:
            continue
        text = extension if line.text.endswith(" ") else " " + extension
        edits.append(Edit(position=line.end, text=text))

    log.info("contd.add_planned", edits=len(edits))
    return edits


class _CueState:
    __slots__ = ("line", "changed", "new_text", "has_contd", "character", "is_dual")

    def __init__(self, line: Line, changed: bool, new_text: Optional[str],
                 has_contd: bool, character: str, is_dual: bool):
        self.line = line
        self.changed = changed
        self.new_text = new_text
        self.has_contd = has_contd
        self.character = character
        self.is_dual = is_dual


def clean_contds(lines: Iterable[Line], strict: bool = True, label: str = "CONT'D") -> list[Edit]:
    """
    Tidy every CONT'D in the screenplay.

    strict:     CONT'D only on successive cues by the same character (no scene
                heading between); invalid ones removed; none on dual dialogue.
    non-strict: existing CONT'Ds are respected and only their format is fixed.
    """
    suffix = f"({label.upper()})"
    cues: list[_CueState] = []
    previous: Optional[str] = None

    for line in lines:
        if line.type == LineType.HEADING:
            previous = None
            continue
        if line.type == LineType.CHARACTER:
            trimmed = line.text.strip()
            has_contd = trimmed.upper().endswith(suffix)
            character = (trimmed[: -len(suffix)] if has_contd else trimmed).strip()
            changed = False
            new_text = None
            if previous == character or (not strict and has_contd):
                new_text = f"{character} ({label})"
                changed = True
            if strict and has_contd and previous != character:
                new_text = character
                changed = True
            previous = character
            cues.append(_CueState(line, changed, new_text, has_contd, character, False))
        elif line.type == LineType.DUAL_DIALOGUE_CHARACTER:
            trimmed = line.text.strip()
            body = trimmed[:-1].strip() if trimmed.endswith("^") else trimmed
            has_contd = body.upper().endswith(suffix)
            character = (body[: -len(suffix)] if has_contd else body).strip()
            changed = False
            new_text = None
            if has_contd:
                new_text = f"{character}^" if strict else f"{character} ({label})^"
                changed = True
            previous = None
            cues.append(_CueState(line, changed, new_text, has_contd, character, True))

    # Left side of a dual-dialogue pair
    for current, following in zip(cues, cues[1:]):
        if following.is_dual and current.changed:
            if strict or not current.has_contd:
                current.new_text = current.character
            else:
                current.new_text = f"{current.character} ({label})"

    edits = [
        Edit(position=c.line.position, length=len(c.line.text), text=c.new_text)
        for c in cues
        if c.changed and c.new_text is not None and c.new_text != c.line.text
    ]
    log.info("contd.clean_planned", strict=strict, cues=len(cues), edits=len(edits))
    return edits


def apply_edits(host, edits: Iterable[Edit]) -> int:
    """Apply *edits* back to front so earlier offsets stay valid.  Returns count."""
    ordered = sorted(edits, key=lambda e: e.position, reverse=True)
    for edit in ordered:
        host.replace_range(edit.position, edit.length, edit.text)
    return len(ordered)
