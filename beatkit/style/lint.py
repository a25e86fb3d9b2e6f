"""
Prose lint after *The Elements of Style*.

Flags words and phrases worth a second look in action and dialogue lines:
adverbs, adjectives, nominalisations (only when repeated), weak verbs,
passive voice, conjunctions, fillers, redundancies and clichés.  Matches
inside inline notes are ignored; synopsis lines are skipped entirely.
"""
from __future__ import annotations

import re
from collections import Counter
from enum import Enum
from typing import Iterable, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from beatkit.host.base import Host
from beatkit.screenplay.fountain import Line, LineType
from beatkit.tags.scanner import NOTE_RE

log = structlog.get_logger(__name__)


class Category(str, Enum):
    ADVERBS = "adverbs"
    ADJECTIVES = "adjectives"
    NOUNS = "nouns"
    VERBS = "verbs"
    PASSIVE_VOICE = "passiveVoice"
    CONJUNCTIONS = "conjunctions"
    FILLERS = "fillers"
    REDUNDANCIES = "redundancies"
    CLICHES = "cliches"

    @property
    def setting_key(self) -> str:
        return "syntax_show" + self.value[0].upper() + self.value[1:]


def _words(*phrases: str) -> str:
    return "|".join(re.escape(p) for p in phrases)


PATTERNS: dict[Category, re.Pattern] = {
    Category.ADVERBS: re.compile(r"\b\w+ly\b", re.IGNORECASE),
    Category.ADJECTIVES: re.compile(r"\b\w+(?:ous|ful|able|ible|ic|ive|al)\b", re.IGNORECASE),
    Category.NOUNS: re.compile(r"\b\w+(?:tion|ment|ness|ity|age|ance|ence)\b", re.IGNORECASE),
    Category.VERBS: re.compile(
        r"\b(?:is|are|was|were|be|been|being|have|has|had|do|does|did|"
        r"seem|seems|seemed|appear|appears|appeared)\b",
        re.IGNORECASE,
    ),
    Category.PASSIVE_VOICE: re.compile(
        r"\b(?:is|are|was|were|be|been|being)\b\s+\b\w+(?:ed|en|n|t|wn|ne)\b", re.IGNORECASE
    ),
    Category.CONJUNCTIONS: re.compile(r"\b(?:and|but|or|nor|for|yet|so)\b", re.IGNORECASE),
    Category.FILLERS: re.compile(r"\b(?:%s)\b" % _words(
        "um", "uh", "er", "ah", "hmm", "oh", "okay", "alright", "anyway", "actually",
        "literally", "I guess", "I mean", "sort of", "kind of", "kinda", "basically",
        "pretty much", "essentially", "just", "really", "honestly", "seriously",
        "clearly", "obviously", "definitely", "totally", "completely",
    ), re.IGNORECASE),
    Category.REDUNDANCIES: re.compile(r"\b(?:%s)\b" % _words(
        "true fact", "free gift", "advance warning", "final outcome", "unexpected surprise",
        "completely unanimous", "past history", "added bonus", "basic fundamentals",
        "basic necessities", "exact duplicate", "exact replica", "reason why",
        "close scrutiny", "final conclusion", "over exaggerate", "past memories",
        "past experience", "false pretense", "circle around", "collaborate together",
        "continue on", "current trend", "each and every", "empty space",
        "estimated roughly", "first began", "foreign imports", "frozen ice",
        "full capacity", "future prospects", "general public", "general consensus",
    ), re.IGNORECASE),
    Category.CLICHES: re.compile(r"\b(?:%s)\b" % _words(
        "at the end of the day", "think outside the box", "only time will tell",
        "in the nick of time", "better late than never", "as luck would have it",
        "it is what it is", "back to square one", "beat around the bush",
        "easier said than done", "every cloud has a silver lining", "go the extra mile",
        "hit the nail on the head", "last but not least", "let bygones be bygones",
        "the writing on the wall", "tip of the iceberg", "water under the bridge",
        "when push comes to shove", "you live and learn",
    ), re.IGNORECASE),
}

COLORS: dict[Category, str] = {
    Category.ADVERBS: "#b84f50",
    Category.ADJECTIVES: "#837a40",
    Category.NOUNS: "#96601d",
    Category.VERBS: "#44785c",
    Category.PASSIVE_VOICE: "#4a838f",
    Category.CONJUNCTIONS: "#78674c",
    Category.FILLERS: "#7b54a4",
    Category.REDUNDANCIES: "#a3668d",
    Category.CLICHES: "#527099",
}

_LINTED_TYPES = (LineType.ACTION, LineType.DIALOGUE)


class StyleToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    word: str
    line_index: int
    position: int          # Absolute offset

    @property
    def length(self) -> int:
        return len(self.word)

    @property
    def color(self) -> str:
        return COLORS[self.category]


def _inside_note(text: str, offset: int) -> bool:
    return any(m.start() <= offset < m.end() for m in NOTE_RE.finditer(text))


def lint(lines: Sequence[Line], enabled: Optional[Iterable[Category]] = None) -> list[StyleToken]:
    """Tokens for the *enabled* categories (all by default), ordered by position."""
    wanted = set(Category) if enabled is None else set(enabled)
    found: dict[Category, list[StyleToken]] = {c: [] for c in Category}

    for i, line in enumerate(lines):
        if line.text.strip().startswith("=") or line.type not in _LINTED_TYPES:
            continue
        for category, pattern in PATTERNS.items():
            for m in pattern.finditer(line.text):
                if _inside_note(line.text, m.start()):
                    continue
                found[category].append(StyleToken(
                    category=category, word=m.group(0), line_index=i, position=line.position + m.start(),
                ))

    # Nominalisations only count once they repeat
    freq = Counter(t.word.lower() for t in found[Category.NOUNS])
    found[Category.NOUNS] = [t for t in found[Category.NOUNS] if freq[t.word.lower()] > 1]

    tokens = [t for c in Category if c in wanted for t in found[c]]
    tokens.sort(key=lambda t: t.position)
    log.debug("style.linted", tokens=len(tokens), categories=len(wanted))
    return tokens


class StylePreferences:
    """Per-category show flags, user-scoped, all on by default."""

    def __init__(self, host: Host):
        self._host = host
        self._show: dict[Category, bool] = {}
        for category in Category:
            value = host.get_user_default(category.setting_key)
            self._show[category] = value if isinstance(value, bool) else True

    def shown(self, category: Category) -> bool:
        return self._show[category]

    def enabled(self) -> list[Category]:
        return [c for c in Category if self._show[c]]

    def toggle(self, category: Category | str) -> bool:
        category = Category(category)
        self._show[category] = not self._show[category]
        self._host.set_user_default(category.setting_key, self._show[category])
        return self._show[category]


class TokenCursor:
    """Round-robin walk over lint tokens."""

    def __init__(self, tokens: Sequence[StyleToken] = ()):
        self.tokens = list(tokens)
        self.index = -1

    def reset(self, tokens: Sequence[StyleToken]) -> None:
        self.tokens = list(tokens)
        self.index = -1

    def next(self) -> Optional[StyleToken]:
        if not self.tokens:
            return None
        self.index = (self.index + 1) % len(self.tokens)
        return self.tokens[self.index]

    def previous(self) -> Optional[StyleToken]:
        if not self.tokens:
            return None
        self.index = (self.index - 1) % len(self.tokens) if self.index >= 0 else len(self.tokens) - 1
        return self.tokens[self.index]

    def counter(self) -> str:
        total = len(self.tokens)
        return f"{self.index + 1} / {total}" if total and self.index >= 0 else f"0 / {total}"
