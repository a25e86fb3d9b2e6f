"""
Persisted preferences for the keywords panel.

Each preference is read once from its host store when constructed and
written back on every mutation.  Stored data that fails validation is
discarded with a warning and the default is used instead.
"""
from __future__ import annotations

from typing import Annotated, Any, Container, Iterator, Optional

import structlog
from pydantic import AfterValidator, StrictBool, TypeAdapter, ValidationError

from beatkit.host.base import Host
from beatkit.tags.colors import normalize_hex

log = structlog.get_logger(__name__)

HexColor = Annotated[str, AfterValidator(normalize_hex)]

_COLOR_MAP = TypeAdapter(dict[str, HexColor])
_TAG_LIST = TypeAdapter(list[str])
_FLAG = TypeAdapter(StrictBool)


def _validated(raw: Any, adapter: TypeAdapter, default: Any, key: str) -> Any:
    if raw is None:
        return default
    try:
        return adapter.validate_python(raw)
    except ValidationError as exc:
        log.warning("preferences.invalid", key=key, errors=exc.error_count())
        return default


class ColorPreferences:
    """Tag -> highlight color, user-scoped (shared by every document)."""

    KEY = "tagColors"

    def __init__(self, host: Host):
        self._host = host
        self._colors: dict[str, str] = _validated(host.get_user_default(self.KEY), _COLOR_MAP, {}, self.KEY)

    def get(self, tag: str) -> Optional[str]:
        return self._colors.get(tag)

    def resolve(self, tag: str) -> str:
        from beatkit.config import config
        return self._colors.get(tag) or config.DEFAULT_TAG_COLOR

    def set(self, tag: str, color: str) -> str:
        normalized = normalize_hex(color)
        self._colors[tag] = normalized
        self._flush()
        return normalized

    def remove(self, tag: str) -> bool:
        if self._colors.pop(tag, None) is None:
            return False
        self._flush()
        return True

    def as_dict(self) -> dict[str, str]:
        return dict(self._colors)

    def _flush(self) -> None:
        self._host.set_user_default(self.KEY, self._colors)


class FavoriteTags:
    """Ordered, duplicate-free list of pinned tags, document-scoped."""

    KEY = "favoriteTags"

    def __init__(self, host: Host):
        self._host = host
        raw = _validated(host.get_document_setting(self.KEY), _TAG_LIST, [], self.KEY)
        self._tags: list[str] = list(dict.fromkeys(raw))

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._tags))

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __len__(self) -> int:
        return len(self._tags)

    def add(self, tag: str) -> bool:
        if tag in self._tags:
            return False
        self._tags.append(tag)
        self._flush()
        return True

    def remove(self, tag: str) -> bool:
        if tag not in self._tags:
            return False
        self._tags.remove(tag)
        self._flush()
        return True

    def prune(self, present: Container[str]) -> list[str]:
        """Drop tags that are no longer in *present*; always flushes."""
        dropped = [t for t in self._tags if t not in present]
        self._tags = [t for t in self._tags if t in present]
        self._flush()
        if dropped:
            log.info("preferences.favorites_pruned", dropped=dropped)
        return dropped

    def as_list(self) -> list[str]:
        return list(self._tags)

    def _flush(self) -> None:
        self._host.set_document_setting(self.KEY, self._tags)


class DismissedEntries:
    """Checked-off note entries plus the hide-checked toggle, document-scoped."""

    KEY = "dismissedEntries"
    HIDE_KEY = "hideDismissed"

    def __init__(self, host: Host):
        self._host = host
        self._keys: set[str] = set(_validated(host.get_document_setting(self.KEY), _TAG_LIST, [], self.KEY))
        self._hide: bool = _validated(host.get_document_setting(self.HIDE_KEY), _FLAG, False, self.HIDE_KEY)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def toggle(self, key: str) -> bool:
        """Flip *key*; returns whether it is now dismissed."""
        if key in self._keys:
            self._keys.discard(key)
            dismissed = False
        else:
            self._keys.add(key)
            dismissed = True
        self._host.set_document_setting(self.KEY, sorted(self._keys))
        return dismissed

    @property
    def hide(self) -> bool:
        return self._hide

    @hide.setter
    def hide(self, value: bool) -> None:
        self._hide = bool(value)
        self._host.set_document_setting(self.HIDE_KEY, self._hide)


class ThemePreference:
    """Panel theme, user-scoped.  Dark unless the user chose otherwise."""

    KEY = "themePreference"

    def __init__(self, host: Host):
        self._host = host
        self._dark: bool = _validated(host.get_user_default(self.KEY), _FLAG, True, self.KEY)

    @property
    def dark(self) -> bool:
        return self._dark

    @property
    def name(self) -> str:
        return "dark" if self._dark else "light"

    def foreground(self) -> str:
        from beatkit.config import config
        return config.foreground_for_theme(self._dark)

    def toggle(self) -> bool:
        self._dark = not self._dark
        self._host.set_user_default(self.KEY, self._dark)
        return self._dark
