"""
Color math for tag highlights.

Contrast follows WCAG 2.x relative luminance.  `ensure_contrast` keeps the
hue and saturation of a highlight and only walks its HLS lightness until the
highlight is legible behind the editor's text color.
"""
from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

log = structlog.get_logger(__name__)

RGB = tuple[int, int, int]

PALETTE: tuple[str, ...] = (
    "#3498db", "#e74c3c", "#f39c12", "#9b59b6", "#1abc9c",
    "#e67e22", "#16a085", "#27ae60", "#2980b9", "#8e44ad",
    "#c0392b", "#d35400", "#f39c12", "#2ecc71", "#3498db",
)


def parse_hex(color: str) -> RGB:
    """Parse `#rgb` or `#rrggbb` (leading `#` optional) into an RGB triple."""
    value = color.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        raise ValueError(f"Not a hex color: {color!r}")
    try:
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
    except ValueError:
        raise ValueError(f"Not a hex color: {color!r}") from None


def to_hex(r: int, g: int, b: int) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(max(0, min(255, int(c))) for c in (r, g, b)))


def normalize_hex(color: str) -> str:
    return to_hex(*parse_hex(color))


def relative_luminance(rgb: RGB) -> float:
    def channel(c: int) -> float:
        c = c / 255.0
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = rgb
    return 0.2126 * channel(r) + 0.7152 * channel(g) + 0.0722 * channel(b)


def contrast_ratio(a: RGB, b: RGB) -> float:
    la, lb = relative_luminance(a), relative_luminance(b)
    lighter, darker = max(la, lb), min(la, lb)
    return (lighter + 0.05) / (darker + 0.05)


def brightness(rgb: RGB) -> float:
    """Perceived brightness, 0..255."""
    r, g, b = rgb
    return (r * 299 + g * 587 + b * 114) / 1000


@dataclass(frozen=True)
class ContrastParams:
    min_ratio: float = 4.5
    lightness_step: float = 0.01
    min_brightness_gap: float = 125.0

    def __post_init__(self):
        if self.min_ratio < 1.0:
            raise ValueError("min_ratio must be >= 1")
        if not 0 < self.lightness_step <= 1:
            raise ValueError("lightness_step must be in (0, 1]")
        if not 0 <= self.min_brightness_gap <= 255:
            raise ValueError("min_brightness_gap must be in [0, 255]")

    @classmethod
    def from_config(cls) -> "ContrastParams":
        from beatkit.config import config
        return cls(
            min_ratio=config.CONTRAST_MIN_RATIO,
            lightness_step=config.CONTRAST_LIGHTNESS_STEP,
            min_brightness_gap=config.CONTRAST_MIN_BRIGHTNESS_GAP,
        )


def _legible(bg: RGB, fg: RGB, params: ContrastParams) -> bool:
    return (
        contrast_ratio(bg, fg) >= params.min_ratio
        and abs(brightness(bg) - brightness(fg)) >= params.min_brightness_gap
    )


def _from_hls(h: float, l: float, s: float) -> RGB:
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return (round(r * 255), round(g * 255), round(b * 255))


def ensure_contrast(color: str, foreground: str, params: Optional[ContrastParams] = None) -> str:
    """
    Return *color* adjusted so it reads behind *foreground* text.

    Lighter and darker lightness values are tried in lock-step; the first step
    count at which either direction passes wins, the higher-contrast direction
    on a tie.  A candidate must also be at least as contrasting as the input.
    Returns the input (normalised) when no lightness in range passes.
    """
    params = params or ContrastParams.from_config()
    rgb = parse_hex(color)
    fg = parse_hex(foreground)
    normalized = to_hex(*rgb)
    if _legible(rgb, fg, params):
        return normalized

    base_ratio = contrast_ratio(rgb, fg)
    h, l, s = colorsys.rgb_to_hls(*(c / 255.0 for c in rgb))
    max_steps = math.ceil(1.0 / params.lightness_step)

    for k in range(1, max_steps + 1):
        candidates: list[tuple[float, RGB]] = []
        in_range = False
        for sign in (1, -1):
            lightness = l + sign * k * params.lightness_step
            if not 0.0 <= lightness <= 1.0:
                continue
            in_range = True
            candidate = _from_hls(h, lightness, s)
            ratio = contrast_ratio(candidate, fg)
            if ratio >= base_ratio and _legible(candidate, fg, params):
                candidates.append((ratio, candidate))
        if candidates:
            ratio, best = max(candidates)
            log.debug("colors.contrast_adjusted", source=normalized, result=to_hex(*best), steps=k)
            return to_hex(*best)
        if not in_range:
            break

    log.debug("colors.contrast_unreachable", source=normalized, foreground=foreground)
    return normalized


def darken_hex(color: str, factor: float = 0.2) -> str:
    r, g, b = parse_hex(color)
    return to_hex(*(math.floor(c * (1 - factor)) for c in (r, g, b)))


def readable_text_color(color: str) -> str:
    """Black or white pill text, whichever reads on *color*."""
    return "#000000" if brightness(parse_hex(color)) > 128 else "#ffffff"


def _int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> int:
    """The classic `h = c + ((h << 5) - h)` string hash; only the shift wraps to 32 bits."""
    h = 0
    for ch in text:
        h = ord(ch) + (_int32(_int32(h) << 5) - h)
    return h


def palette_color(name: str, palette: Sequence[str] = PALETTE) -> str:
    return palette[abs(string_hash(name)) % len(palette)]
