"""
Central configuration for beatkit.
All values are overridable via environment variables.
"""
import os
from pathlib import Path


def _opt(key: str, default: str) -> str:
    return os.getenv(key, default)


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


# ---------------------------------------------------------------------------
# Refresh / navigation timing
# ---------------------------------------------------------------------------
DEBOUNCE_SEC: float = _float("BEATKIT_DEBOUNCE_SEC", 1.5)
"""Quiet period after the last text change before a full rescan runs."""

FLASH_CYCLES: int = _int("BEATKIT_FLASH_CYCLES", 3)
"""On/off cycles of the flash highlight when jumping to an occurrence."""

FLASH_INTERVAL_SEC: float = _float("BEATKIT_FLASH_INTERVAL_SEC", 0.25)
"""Half-period of one flash cycle."""

# ---------------------------------------------------------------------------
# Tag colors
# ---------------------------------------------------------------------------
DEFAULT_TAG_COLOR: str = _opt("BEATKIT_DEFAULT_TAG_COLOR", "#fefbc0")
"""Highlight color for tags the user never picked a color for."""

CONTRAST_MIN_RATIO: float = _float("BEATKIT_CONTRAST_MIN_RATIO", 4.5)
"""WCAG contrast ratio a highlight must reach against the editor text color."""

CONTRAST_LIGHTNESS_STEP: float = _float("BEATKIT_CONTRAST_LIGHTNESS_STEP", 0.01)
"""Lightness increment used by the contrast search (HLS space, 0..1)."""

CONTRAST_MIN_BRIGHTNESS_GAP: float = _float("BEATKIT_CONTRAST_MIN_BRIGHTNESS_GAP", 125.0)
"""Minimum perceived-brightness difference (0..255) between highlight and text."""

DARK_TEXT_COLOR: str = _opt("BEATKIT_DARK_TEXT_COLOR", "#ffffff")
"""Editor foreground color in dark theme."""

LIGHT_TEXT_COLOR: str = _opt("BEATKIT_LIGHT_TEXT_COLOR", "#000000")
"""Editor foreground color in light theme."""

# ---------------------------------------------------------------------------
# Screenplay
# ---------------------------------------------------------------------------
CONTD_LABEL: str = _opt("BEATKIT_CONTD_LABEL", "CONT'D")
"""Localized continuation extension appended to repeated character cues."""

# ---------------------------------------------------------------------------
# Storage / surfaces
# ---------------------------------------------------------------------------
SETTINGS_PATH: str = _opt(
    "BEATKIT_SETTINGS_PATH", str(Path.home() / ".beatkit" / "defaults.json")
)
"""JSON file backing user-scoped defaults for the CLI and preview server."""

DOCUMENT_PATH: str = _opt("BEATKIT_DOCUMENT_PATH", "")
"""Fountain file opened by the preview server."""

LOG_LEVEL: str = _opt("BEATKIT_LOG_LEVEL", "warning")
"""Threshold for CLI log output when --verbose is not given."""


class _Config:
    """
    Dynamic config accessor: reads env vars at call time.
    Use this where tests override env vars per-test.
    Usage: from beatkit.config import config; config.DEBOUNCE_SEC
    """

    _ENV_MAP = {
        "DEBOUNCE_SEC": ("BEATKIT_DEBOUNCE_SEC", "1.5", float),
        "FLASH_CYCLES": ("BEATKIT_FLASH_CYCLES", "3", int),
        "FLASH_INTERVAL_SEC": ("BEATKIT_FLASH_INTERVAL_SEC", "0.25", float),
        "DEFAULT_TAG_COLOR": ("BEATKIT_DEFAULT_TAG_COLOR", "#fefbc0", str),
        "CONTRAST_MIN_RATIO": ("BEATKIT_CONTRAST_MIN_RATIO", "4.5", float),
        "CONTRAST_LIGHTNESS_STEP": ("BEATKIT_CONTRAST_LIGHTNESS_STEP", "0.01", float),
        "CONTRAST_MIN_BRIGHTNESS_GAP": ("BEATKIT_CONTRAST_MIN_BRIGHTNESS_GAP", "125", float),
        "DARK_TEXT_COLOR": ("BEATKIT_DARK_TEXT_COLOR", "#ffffff", str),
        "LIGHT_TEXT_COLOR": ("BEATKIT_LIGHT_TEXT_COLOR", "#000000", str),
        "CONTD_LABEL": ("BEATKIT_CONTD_LABEL", "CONT'D", str),
        "SETTINGS_PATH": (
            "BEATKIT_SETTINGS_PATH",
            str(Path.home() / ".beatkit" / "defaults.json"),
            str,
        ),
        "DOCUMENT_PATH": ("BEATKIT_DOCUMENT_PATH", "", str),
        "LOG_LEVEL": ("BEATKIT_LOG_LEVEL", "warning", str),
    }

    def __getattr__(self, name: str):
        if name not in self._ENV_MAP:
            raise AttributeError(f"Unknown config key: {name}")
        env_key, default, cast = self._ENV_MAP[name]
        return cast(os.getenv(env_key, default))

    def foreground_for_theme(self, dark: bool) -> str:
        return self.DARK_TEXT_COLOR if dark else self.LIGHT_TEXT_COLOR


config = _Config()
