"""Fixed color tables mapping backend palettes onto the renderer's color model.

The renderer works with :class:`rich.color.Color`. Every conversion here is
total: any input maps to exactly one color and unknown inputs fall back to
the terminal default.
"""

from __future__ import annotations

import re
from typing import Optional, Union

from rich.color import Color, ColorType

DEFAULT_COLOR = Color.default()

# 0-15 are the standard/bright palette entries, 16-255 the xterm cube and ramp.
INDEXED_COLORS: tuple[Color, ...] = tuple(Color.from_ansi(index) for index in range(256))

NAMED_COLORS: dict[str, Color] = {
    "default": DEFAULT_COLOR,
    "black": INDEXED_COLORS[0],
    "red": INDEXED_COLORS[1],
    "green": INDEXED_COLORS[2],
    "brown": INDEXED_COLORS[3],
    "yellow": INDEXED_COLORS[3],
    "blue": INDEXED_COLORS[4],
    "magenta": INDEXED_COLORS[5],
    "cyan": INDEXED_COLORS[6],
    "white": INDEXED_COLORS[7],
    "brightblack": INDEXED_COLORS[8],
    "brightred": INDEXED_COLORS[9],
    "brightgreen": INDEXED_COLORS[10],
    "brightbrown": INDEXED_COLORS[11],
    "brightyellow": INDEXED_COLORS[11],
    "brightblue": INDEXED_COLORS[12],
    "brightmagenta": INDEXED_COLORS[13],
    "brightcyan": INDEXED_COLORS[14],
    "brightwhite": INDEXED_COLORS[15],
}

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

RGB = tuple[int, int, int]


def from_index(index: int) -> Color:
    """Map an 8-bit palette index; anything outside 0-255 is the default color."""
    if isinstance(index, int) and 0 <= index < len(INDEXED_COLORS):
        return INDEXED_COLORS[index]
    return DEFAULT_COLOR


def from_rgb(rgb: RGB) -> Color:
    """Map a 24-bit triple, clamping each channel to 0-255."""
    red, green, blue = (max(0, min(255, int(channel))) for channel in rgb)
    return Color.from_rgb(red, green, blue)


def from_name(name: str) -> Color:
    """Map a named or hex color string (pyte's native color encoding)."""
    key = (name or "").strip().lower().replace("_", "").replace("-", "")
    if key in NAMED_COLORS:
        return NAMED_COLORS[key]
    match = _HEX_RE.match(key)
    if match:
        value = match.group(1)
        return from_rgb((int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)))
    return DEFAULT_COLOR


def from_rich(color: Optional[Color]) -> Color:
    """Normalize a color produced by rich's ANSI decoder."""
    if color is None or color.type == ColorType.DEFAULT:
        return DEFAULT_COLOR
    if color.type == ColorType.TRUECOLOR and color.triplet is not None:
        return from_rgb(tuple(color.triplet))
    if color.number is not None:
        return from_index(color.number)
    return DEFAULT_COLOR


def convert(value: Union[None, str, int, RGB, Color]) -> Color:
    """Convert any supported native color encoding."""
    if value is None:
        return DEFAULT_COLOR
    if isinstance(value, Color):
        return from_rich(value)
    if isinstance(value, bool):
        return DEFAULT_COLOR
    if isinstance(value, int):
        return from_index(value)
    if isinstance(value, str):
        return from_name(value)
    if isinstance(value, tuple) and len(value) == 3:
        return from_rgb(value)
    return DEFAULT_COLOR
