"""
Minimal Fountain line classifier.

Produces the `Line` records the host hands to plugins: literal text, absolute
start offset and a coarse element type.  Only the distinctions the plugins
act on are modelled (headings, cues, dialogue, sections, synopses...); it is
not a full Fountain parser.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LineType(str, Enum):
    EMPTY = "empty"
    HEADING = "heading"
    ACTION = "action"
    CHARACTER = "character"
    DUAL_DIALOGUE_CHARACTER = "dual_dialogue_character"
    PARENTHETICAL = "parenthetical"
    DIALOGUE = "dialogue"
    TRANSITION = "transition"
    SECTION = "section"
    SYNOPSIS = "synopsis"
    CENTERED = "centered"
    LYRICS = "lyrics"
    PAGE_BREAK = "page_break"


HEADING_RE = re.compile(r"^(?:INT\.?/EXT|EXT\.?/INT|INT|EXT|EST|I/E)[.\s]", re.IGNORECASE)
_FORCED_HEADING_RE = re.compile(r"^\.[^.]")
_PAGE_BREAK_RE = re.compile(r"^={3,}$")
_EXTENSION_RE = re.compile(r"\(.*?\)")


class Line(BaseModel):
    """One document line as seen by plugins."""
    model_config = ConfigDict(frozen=True)

    index: int
    text: str
    position: int          # Absolute offset of the first character
    type: LineType = LineType.ACTION

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def end(self) -> int:
        return self.position + len(self.text)

    def is_any_character(self) -> bool:
        return self.type in (LineType.CHARACTER, LineType.DUAL_DIALOGUE_CHARACTER)

    def character_name(self) -> Optional[str]:
        """Cue name without forcing marks, extensions or the dual-dialogue caret."""
        if not self.is_any_character():
            return None
        name = self.text.strip()
        if name.startswith("@"):
            name = name[1:]
        name = name.rstrip("^").strip()
        name = _EXTENSION_RE.sub("", name).strip()
        return name.upper() or None


def is_scene_heading(text: str) -> bool:
    stripped = text.strip()
    return bool(HEADING_RE.match(stripped) or _FORCED_HEADING_RE.match(stripped))


def _looks_like_cue(stripped: str) -> bool:
    if stripped.startswith("@"):
        return len(stripped) > 1
    name = _EXTENSION_RE.sub("", stripped.rstrip("^")).strip()
    if not name or name.endswith(":"):
        return False
    if not any(ch.isalpha() for ch in name):
        return False
    return name == name.upper()


def classify(text: str) -> list[Line]:
    """Split *text* into classified `Line` records (offsets count the newline)."""
    raw_lines = text.split("\n")
    lines: list[Line] = []
    position = 0
    in_dialogue = False

    for i, raw in enumerate(raw_lines):
        stripped = raw.strip()
        prev_empty = i == 0 or not raw_lines[i - 1].strip()
        next_filled = i + 1 < len(raw_lines) and bool(raw_lines[i + 1].strip())

        if not stripped:
            line_type = LineType.EMPTY
            in_dialogue = False
        elif in_dialogue:
            line_type = LineType.PARENTHETICAL if stripped.startswith("(") else LineType.DIALOGUE
        elif _PAGE_BREAK_RE.match(stripped):
            line_type = LineType.PAGE_BREAK
        elif stripped.startswith("#"):
            line_type = LineType.SECTION
        elif stripped.startswith("="):
            line_type = LineType.SYNOPSIS
        elif is_scene_heading(stripped):
            line_type = LineType.HEADING
        elif stripped.startswith(">") and stripped.endswith("<"):
            line_type = LineType.CENTERED
        elif stripped.startswith(">") or (
            prev_empty and stripped.endswith("TO:") and stripped == stripped.upper()
        ):
            line_type = LineType.TRANSITION
        elif stripped.startswith("~"):
            line_type = LineType.LYRICS
        elif prev_empty and next_filled and _looks_like_cue(stripped):
            line_type = (
                LineType.DUAL_DIALOGUE_CHARACTER if stripped.endswith("^") else LineType.CHARACTER
            )
            in_dialogue = True
        else:
            line_type = LineType.ACTION

        lines.append(Line(index=i, text=raw, position=position, type=line_type))
        position += len(raw) + 1

    return lines
