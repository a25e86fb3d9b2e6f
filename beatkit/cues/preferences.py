"""
Cue preferences, stored as one JSON string under the `qman_preferences`
user default.

The stored shape is flat: the global keys (`theme`, `showSceneContext`,
`globalHighlight`, `globalHide`) sit next to one object per cue type.
Stored data that does not validate is ignored and defaults are used.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError, field_validator

from beatkit.host.base import Host
from beatkit.tags.colors import normalize_hex, palette_color

log = structlog.get_logger(__name__)

STORAGE_KEY = "qman_preferences"

DEFAULT_TYPE_COLORS: dict[str, str] = {
    "SOUND": "#3498db",
    "LIGHT": "#f39c12",
    "MUSIC": "#e74c3c",
    "VIDEO": "#9b59b6",
    "PROJECTION": "#1abc9c",
}

_GLOBAL_KEYS = {"theme", "showSceneContext", "globalHighlight", "globalHide"}


def default_color_for_type(cue_type: str) -> str:
    return DEFAULT_TYPE_COLORS.get(cue_type) or palette_color(cue_type)


class CueTheme(str, Enum):
    DARK = "dark"
    LIGHT = "light"
    SYSTEM = "system"


class CueTypePreference(BaseModel):
    color: str
    enabled: StrictBool = True
    highlight: StrictBool = False
    hide: StrictBool = False

    @field_validator("color")
    @classmethod
    def _hex(cls, v: str) -> str:
        return normalize_hex(v)


def _default_types() -> dict[str, CueTypePreference]:
    return {t: CueTypePreference(color=c) for t, c in DEFAULT_TYPE_COLORS.items()}


class CuePreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: CueTheme = CueTheme.SYSTEM
    show_scene_context: StrictBool = Field(default=False, alias="showSceneContext")
    global_highlight: StrictBool = Field(default=False, alias="globalHighlight")
    global_hide: StrictBool = Field(default=False, alias="globalHide")
    types: dict[str, CueTypePreference] = Field(default_factory=_default_types)

    # ----- Per-type access -------------------------------------------------

    def for_type(self, cue_type: str) -> Optional[CueTypePreference]:
        return self.types.get(cue_type)

    def hides(self, cue_type: str) -> bool:
        pref = self.types.get(cue_type)
        return bool(pref and pref.hide)

    def any_highlight(self) -> bool:
        return self.global_highlight or any(p.highlight for p in self.types.values())

    def ensure_types(self, cue_types: list[str]) -> list[str]:
        """Give unseen types their defaults.  Returns the types that were added."""
        added = []
        for cue_type in cue_types:
            if cue_type not in self.types:
                self.types[cue_type] = CueTypePreference(
                    color=default_color_for_type(cue_type),
                    highlight=self.global_highlight,
                    hide=self.global_hide,
                )
                added.append(cue_type)
        return added

    # ----- Storage format -----------------------------------------------------

    def to_stored(self) -> str:
        data: dict[str, Any] = {
            "theme": self.theme.value,
            "showSceneContext": self.show_scene_context,
            "globalHighlight": self.global_highlight,
            "globalHide": self.global_hide,
        }
        for cue_type, pref in self.types.items():
            data[cue_type] = pref.model_dump()
        return json.dumps(data)

    @classmethod
    def from_stored(cls, raw: Optional[str]) -> "CuePreferences":
        """Parse the stored JSON string; stored types are merged over the defaults."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except ValueError as exc:
            log.warning("cues.preferences_unparseable", error=str(exc))
            return cls()
        if not isinstance(data, dict):
            log.warning("cues.preferences_invalid", root=type(data).__name__)
            return cls()

        stored_types = {k: v for k, v in data.items() if k not in _GLOBAL_KEYS}
        globals_ = {k: v for k, v in data.items() if k in _GLOBAL_KEYS}
        try:
            prefs = cls.model_validate(globals_)
            for cue_type, pref in stored_types.items():
                if isinstance(pref, dict):
                    pref = {"color": default_color_for_type(cue_type), **pref}
                prefs.types[cue_type] = CueTypePreference.model_validate(pref)
        except ValidationError as exc:
            log.warning("cues.preferences_invalid", errors=exc.error_count())
            return cls()
        return prefs


def load_cue_preferences(host: Host) -> CuePreferences:
    raw = host.get_user_default(STORAGE_KEY)
    if raw is not None and not isinstance(raw, str):
        log.warning("cues.preferences_invalid", root=type(raw).__name__)
        return CuePreferences()
    return CuePreferences.from_stored(raw)


def save_cue_preferences(host: Host, prefs: CuePreferences) -> None:
    host.set_user_default(STORAGE_KEY, prefs.to_stored())
