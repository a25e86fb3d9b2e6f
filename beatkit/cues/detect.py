"""
Technical cue detection for stage scripts.

A cue is a trimmed line of the form

    [!]TYPE [(cue N)]: description

optionally wrapped in an inline note (`[[SOUND: thunder]]`), which hides it
from the printed script.  TYPE is upper-case letters and digits.  Scene
headings update the scene every following cue is filed under.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from beatkit.cues.preferences import CuePreferences
from beatkit.screenplay.contd import Edit
from beatkit.screenplay.fountain import Line, LineType, is_scene_heading

log = structlog.get_logger(__name__)

ALL = "ALL"

CUE_RE = re.compile(r"^(!?)([A-Z][A-Z0-9]*)\s*(?:\((?:cue\s+)?(\d+)\))?\s*:\s*(.*)$")
WRAPPED_CUE_RE = re.compile(r"^\[\[\s*(!?)([A-Z][A-Z0-9]*)\s*(?:\((?:cue\s+)?(\d+)\))?\s*:\s*(.*?)\s*\]\]$")
_CANDIDATE_RE = re.compile(r"^[\[!A-Z.]")


class Cue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    number: str = "N/A"
    name: str = ""
    position: int
    line_index: int
    scene: str = "Unknown"
    is_wrapped: bool = False
    forced: bool = False


class Detection(BaseModel):
    model_config = ConfigDict(frozen=True)

    types: list[str]
    cues: list[Cue]


def _match(stripped: str) -> tuple[Optional[re.Match], bool]:
    """Return (match, is_wrapped).  A plain cue line takes precedence."""
    m = CUE_RE.match(stripped)
    if m:
        return m, False
    m = WRAPPED_CUE_RE.match(stripped)
    return (m, True) if m else (None, False)


def detect_cues(lines: Iterable[Line]) -> Detection:
    types: list[str] = []
    cues: list[Cue] = []
    scene = "Unknown"

    for i, line in enumerate(lines):
        stripped = line.text.strip()
        if not stripped or not _CANDIDATE_RE.match(stripped):
            continue
        if line.type == LineType.HEADING or is_scene_heading(stripped):
            scene = stripped[1:].strip() if stripped.startswith(".") else stripped
            continue

        m, wrapped = _match(stripped)
        if m is None:
            continue
        forced, cue_type, number, name = m.groups()
        if cue_type not in types:
            types.append(cue_type)
        cues.append(Cue(
            type=cue_type,
            number=number or "N/A",
            name=(name or "").strip(),
            position=line.position,
            line_index=i,
            scene=scene,
            is_wrapped=wrapped,
            forced=bool(forced),
        ))

    log.debug("cues.detected", cues=len(cues), types=types)
    return Detection(types=types, cues=cues)


def filter_cues(cues: Iterable[Cue], filter_type: str = ALL) -> list[Cue]:
    if filter_type == ALL:
        return list(cues)
    return [c for c in cues if c.type == filter_type]


def _line_at(lines: Sequence[Line], position: int) -> Optional[Line]:
    for line in lines:
        if line.position == position:
            return line
    return None


def renumber_edits(lines: Sequence[Line], cues: Iterable[Cue], filter_type: str = ALL) -> list[Edit]:
    """Number the selected cues 1..N as `TYPE (cue N): desc`, keeping `!` and `[[ ]]`."""
    edits: list[Edit] = []
    for number, cue in enumerate(filter_cues(cues, filter_type), start=1):
        line = _line_at(lines, cue.position)
        if line is None:
            continue
        m, wrapped = _match(line.text.strip())
        if m is None:
            continue
        forced, cue_type, _, description = m.groups()
        body = f"{forced}{cue_type} (cue {number}): {description}"
        new_text = f"[[{body}]]" if wrapped else body
        if new_text != line.text:
            edits.append(Edit(position=line.position, length=len(line.text), text=new_text))

    edits.sort(key=lambda e: e.position, reverse=True)
    return edits


def visibility_edits(lines: Sequence[Line], old: CuePreferences, new: CuePreferences) -> list[Edit]:
    """Wrap cues whose type became hidden; unwrap those whose type became visible."""
    edits: list[Edit] = []
    for line in lines:
        stripped = line.text.strip()
        if not stripped:
            continue
        m, wrapped = _match(stripped)
        if m is None:
            continue
        cue_type = m.group(2)
        hide = new.hides(cue_type)
        if old.hides(cue_type) == hide:
            continue
        if hide and not wrapped:
            edits.append(Edit(position=line.position, length=len(line.text), text=f"[[{stripped}]]"))
        elif not hide and wrapped:
            edits.append(Edit(position=line.position, length=len(line.text), text=stripped[2:-2].strip()))

    edits.sort(key=lambda e: e.position, reverse=True)
    return edits


def highlight_spans(lines: Sequence[Line], cues: Iterable[Cue], prefs: CuePreferences) -> list[tuple[str, int, int]]:
    """`(color, start, length)` over the TYPE word of every cue whose type is highlighted."""
    spans = []
    if not prefs.any_highlight():
        return spans
    for cue in cues:
        pref = prefs.for_type(cue.type)
        if not (pref and pref.highlight and pref.enabled):
            continue
        line = _line_at(lines, cue.position)
        if line is None:
            continue
        offset = line.text.find(cue.type)
        if offset >= 0:
            spans.append((pref.color, line.position + offset, len(cue.type)))
    return spans
