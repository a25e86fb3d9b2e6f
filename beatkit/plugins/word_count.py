"""
Daily word count and project progress.

The session counter follows every text change; the progress summary reads
goals from document settings.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

import structlog

from beatkit.metrics.wordcount import (
    ProgressGoals,
    ProgressSummary,
    WordCountState,
    WordCountTracker,
    count_words,
    screenplay_text,
)
from beatkit.plugins.base import EditorPlugin

log = structlog.get_logger(__name__)


class WordCountPlugin(EditorPlugin):
    def __init__(self) -> None:
        self.tracker = WordCountTracker()
        self.goals: Optional[ProgressGoals] = None
        self.last_state: Optional[WordCountState] = None

    @property
    def name(self) -> str:
        return "word_count"

    @property
    def title(self) -> str:
        return "Daily Word Count"

    def activate(self, host, loop) -> None:
        self.host, self.loop = host, loop
        self.tracker = WordCountTracker(host.text())
        self.goals = ProgressGoals(host)
        self.last_state = self.tracker.state()
        host.menu_item(self.title, self.shortcut, self.reset)
        host.on_text_change(self._on_change)

    def _on_change(self) -> None:
        previous = self.last_state
        self.last_state = self.tracker.update(self.host.text())
        if self.last_state.goal_reached and not (previous and previous.goal_reached):
            self.host.alert("Goal Reached", f"You wrote {self.last_state.session} words this session.")
            log.info("wordcount.goal_reached", session=self.last_state.session, goal=self.last_state.goal)

    def reset(self) -> WordCountState:
        self.last_state = self.tracker.reset(self.host.text())
        return self.last_state

    def set_goal(self, goal: Optional[int]) -> WordCountState:
        self.last_state = self.tracker.set_goal(goal)
        return self.last_state

    def progress(self, on: Optional[date] = None) -> ProgressSummary:
        total = count_words(screenplay_text(self.host.text()))
        return self.goals.summary(total, self.tracker.state().session, on)
