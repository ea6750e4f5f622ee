"""Canonical color keys and hex helpers."""
from __future__ import annotations

import re
from typing import Tuple

ColorTuple = Tuple[int, int, int]

_HEX_RE = re.compile(r"#?([0-9a-f]{3}|[0-9a-f]{6})", re.IGNORECASE)
_KEY_RE = re.compile(r"rgb\((\d{1,3}),(\d{1,3}),(\d{1,3})\)")


def key_of(rgb: ColorTuple) -> str:
    """Return the canonical ``rgb(r,g,b)`` key used to compare colors."""

    r, g, b = rgb
    return f"rgb({int(r)},{int(g)},{int(b)})"


def parse_color_key(key: str) -> ColorTuple | None:
    match = _KEY_RE.fullmatch(key.strip())
    if not match:
        return None
    components = tuple(int(part) for part in match.groups())
    if any(value > 255 for value in components):
        return None
    return components  # type: ignore[return-value]


def validate_hex(value: str) -> str | None:
    """Return ``value`` as ``#RRGGBB`` or ``None`` when it is not a hex color.

    Both ``RGB`` and ``RRGGBB`` are accepted with or without ``#``. Digit case
    is kept as given.
    """

    if not _HEX_RE.fullmatch(value):
        return None
    digits = value[1:] if value.startswith("#") else value
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def hex_to_rgb(value: str) -> ColorTuple:
    """Parse a hex color; malformed input gives black instead of raising."""

    normalized = validate_hex(value)
    if normalized is None:
        return (0, 0, 0)
    return (
        int(normalized[1:3], 16),
        int(normalized[3:5], 16),
        int(normalized[5:7], 16),
    )


def rgb_to_hex(rgb: ColorTuple) -> str:
    r, g, b = rgb
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def parse_color(value: str) -> ColorTuple | None:
    """Accept either a color key or a hex string."""

    value = value.strip()
    if value.lower().startswith("rgb("):
        return parse_color_key(value.lower())
    if validate_hex(value) is None:
        return None
    return hex_to_rgb(value)


def rgb_to_hsl(rgb: ColorTuple) -> Tuple[int, int, int]:
    """Return ``(hue degrees, saturation %, lightness %)`` rounded to ints."""

    r, g, b = (channel / 255 for channel in rgb)
    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2
    hue = 0.0
    saturation = 0.0
    if high != low:
        delta = high - low
        saturation = delta / (2 - high - low) if lightness > 0.5 else delta / (high + low)
        if high == r:
            hue = (g - b) / delta + (6 if g < b else 0)
        elif high == g:
            hue = (b - r) / delta + 2
        else:
            hue = (r - g) / delta + 4
        hue /= 6
    return (round(hue * 360), round(saturation * 100), round(lightness * 100))
