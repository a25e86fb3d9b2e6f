"""
Word counts and writing goals.

`count_words` counts what a writer typed this session (notes, synopses,
sections, omits and forced headings excluded).  `screenplay_text` is the
stricter cut used for project progress: everything from the BONEYARD
heading onwards is dropped as well.
"""
from __future__ import annotations

import math
import re
from datetime import date
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from beatkit.host.base import Host

log = structlog.get_logger(__name__)

_NOTE_RE = re.compile(r"\[\[.*?\]\]")
_SYNOPSIS_RE = re.compile(r"^=.*$", re.MULTILINE)
_SECTION_RE = re.compile(r"^#.*$", re.MULTILINE)
_OMIT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_FORCED_HEADING_RE = re.compile(r"^\..*$", re.MULTILINE)

_BONEYARD_SPLIT_RE = re.compile(r"^\s*#\s*BONEYARD\b", re.IGNORECASE | re.MULTILINE)
_BONEYARD_BLOCK_RE = re.compile(r"\{\{\{.*?\}\}\}", re.DOTALL)
_OMIT_TAG_RE = re.compile(r"\[omit\].*?\[/omit\]", re.DOTALL)


def _words(text: str) -> int:
    return len(text.split())


def count_words(text: str) -> int:
    cleaned = _NOTE_RE.sub("", text)
    cleaned = _SYNOPSIS_RE.sub("", cleaned)
    cleaned = _SECTION_RE.sub("", cleaned)
    cleaned = _OMIT_RE.sub("", cleaned)
    cleaned = _FORCED_HEADING_RE.sub("", cleaned)
    return _words(cleaned)


def screenplay_text(text: str) -> str:
    text = _BONEYARD_SPLIT_RE.split(text, maxsplit=1)[0]
    text = _BONEYARD_BLOCK_RE.sub("", text)
    text = _NOTE_RE.sub("", text)
    text = _SYNOPSIS_RE.sub("", text)
    text = _SECTION_RE.sub("", text)
    text = _OMIT_TAG_RE.sub("", text)
    return _OMIT_RE.sub("", text)


class CountingMode(str, Enum):
    UP = "up"
    DOWN = "down"


class WordCountState(BaseModel):
    model_config = ConfigDict(frozen=True)

    session: int
    total: int
    goal: Optional[int] = None
    mode: CountingMode = CountingMode.UP

    @property
    def goal_reached(self) -> bool:
        return self.goal is not None and self.session >= self.goal

    @property
    def remaining(self) -> Optional[int]:
        if self.goal is None:
            return None
        return max(0, self.goal - self.session)

    @property
    def display(self) -> int:
        """What the counter shows: words written, or words left in down mode."""
        if self.mode is CountingMode.DOWN and self.goal is not None:
            return self.remaining
        return self.session


class WordCountTracker:
    """Session word counter with a resettable baseline."""

    def __init__(self, text: str = ""):
        self.total = count_words(text)
        self.baseline = self.total
        self.goal: Optional[int] = None
        self.mode = CountingMode.UP

    def update(self, text: str) -> WordCountState:
        self.total = count_words(text)
        return self.state()

    def reset(self, text: str) -> WordCountState:
        self.total = count_words(text)
        self.baseline = self.total
        self.mode = CountingMode.UP
        log.info("wordcount.reset", baseline=self.baseline)
        return self.state()

    def set_goal(self, goal: Optional[int]) -> WordCountState:
        if goal is not None and goal < 0:
            raise ValueError("goal must be >= 0")
        self.goal = goal
        return self.state()

    def toggle_mode(self) -> WordCountState:
        self.mode = CountingMode.DOWN if self.mode is CountingMode.UP else CountingMode.UP
        return self.state()

    def state(self) -> WordCountState:
        return WordCountState(
            session=self.total - self.baseline, total=self.total, goal=self.goal, mode=self.mode,
        )


class ProgressSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    today: int
    project_goal: int
    daily_goal: int
    project_progress: float = Field(ge=0)
    daily_progress: float = Field(ge=0)
    remaining: int
    days_left: Optional[int] = None
    per_day_needed: int = 0


class ProgressGoals:
    """Project / daily goals kept in document settings under `goals.*`."""

    PREFIX = "goals."

    def __init__(self, host: Host):
        self._host = host
        self.count_type = self._read("countType", "page")
        if self.count_type not in ("page", "word"):
            self.count_type = "page"
        self.daily_goal = self._read_int("dailyGoal", 0)
        self.project_goal = self._read_int("projectGoal", 100)
        self.deadline = self._read_date("deadlineDate")

    def _read(self, key: str, default):
        value = self._host.get_document_setting(self.PREFIX + key)
        return value if value else default

    def _read_int(self, key: str, default: int) -> int:
        value = self._read(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            log.warning("progress.invalid_setting", key=key, value=value)
            return default
        return value

    def _read_date(self, key: str) -> Optional[date]:
        value = self._read(key, "")
        if not value:
            return None
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            log.warning("progress.invalid_setting", key=key, value=value)
            return None

    def set_count_type(self, count_type: str) -> None:
        self.count_type = "word" if count_type == "word" else "page"
        self._host.set_document_setting(self.PREFIX + "countType", self.count_type)

    def set_daily_goal(self, goal: int) -> None:
        self.daily_goal = max(0, int(goal or 0))
        self._host.set_document_setting(self.PREFIX + "dailyGoal", self.daily_goal)

    def set_project_goal(self, goal: int) -> None:
        self.project_goal = max(0, int(goal or 0))
        self._host.set_document_setting(self.PREFIX + "projectGoal", self.project_goal)

    def set_deadline(self, deadline: Optional[date]) -> None:
        self.deadline = deadline
        self._host.set_document_setting(self.PREFIX + "deadlineDate", deadline.isoformat() if deadline else "")

    def summary(self, total: int, today: int, on: Optional[date] = None) -> ProgressSummary:
        on = on or date.today()
        remaining = max(0, self.project_goal - total)
        days_left = (self.deadline - on).days if self.deadline else None
        per_day = math.ceil(remaining / days_left) if days_left and days_left > 0 and self.project_goal else 0
        return ProgressSummary(
            total=total,
            today=today,
            project_goal=self.project_goal,
            daily_goal=self.daily_goal,
            project_progress=total / self.project_goal if self.project_goal else 0.0,
            daily_progress=max(0, today) / self.daily_goal if self.daily_goal else 0.0,
            remaining=remaining,
            days_left=days_left,
            per_day_needed=per_day,
        )
