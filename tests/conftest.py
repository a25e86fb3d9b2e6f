"""
Shared pytest fixtures for all test levels.
Uses only in-memory documents; nothing touches the real user settings file.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from beatkit.host.memory import InMemoryHost
from beatkit.runtime.loop import EventLoop, ManualClock


# ---------------------------------------------------------------------------
# Environment setup: point config at temp paths before anything reads it
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def set_test_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("BEATKIT_SETTINGS_PATH", str(tmp_path / "settings" / "defaults.json"))
    monkeypatch.delenv("BEATKIT_DOCUMENT_PATH", raising=False)
    monkeypatch.delenv("BEATKIT_DEFAULT_TAG_COLOR", raising=False)
    monkeypatch.delenv("BEATKIT_CONTD_LABEL", raising=False)
    yield


# ---------------------------------------------------------------------------
# Loop and host
# ---------------------------------------------------------------------------
@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def loop(clock: ManualClock) -> EventLoop:
    return EventLoop(clock)


@pytest.fixture
def host(loop: EventLoop) -> InMemoryHost:
    return InMemoryHost(loop=loop)


def make_host(text: str = "", notepad: str = "", clock: ManualClock | None = None) -> InMemoryHost:
    """A host over *text* driven by a manual clock."""
    return InMemoryHost(text, notepad, loop=EventLoop(clock or ManualClock()))


def settle(host: InMemoryHost, clock: ManualClock, seconds: float = 10.0) -> int:
    """Drain queued work, then let every debounce / timer due within *seconds* fire."""
    ran = host.loop.run_pending()
    clock.advance(seconds)
    return ran + host.loop.run_pending()


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------
SAMPLE_SCRIPT = """INT. KITCHEN - NIGHT

Mara pours coffee. [[#mystery starts here]]

MARA
I never sleep.

JONAH
Neither do I. [[@jonah lies]]

EXT. ROOF - LATER

Rain. [[#mystery again]]
"""


CUE_SCRIPT = """INT. THEATRE - NIGHT

SOUND: Thunder rolls
LIGHT (cue 7): Blackout
[[MUSIC: Overture fades in]]

EXT. STREET - DAY

!SOUND: Car horn
VIDEO: Rain loop
"""


def write_document(tmp_path: Path, text: str, name: str = "script.fountain") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path
