"""Palette extraction across decoded frames."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from .color_keys import ColorTuple, key_of
from .frames import Frame


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ColorCount:
    """A distinct visible color and how many pixels use it."""

    color: str
    count: int
    rgb: ColorTuple


def _visible_index_counts(frame: Frame) -> np.ndarray:
    indices = frame.pixels.astype(np.int64, copy=False)
    table_size = len(frame.color_table)
    mask = (indices >= 0) & (indices < table_size)
    if frame.transparent_index is not None:
        mask &= indices != frame.transparent_index
    if table_size == 0:
        return np.zeros(0, dtype=np.int64)
    return np.bincount(indices[mask], minlength=table_size)


def extract_palette(frames: Sequence[Frame]) -> List[ColorCount]:
    """Return the distinct non-transparent colors of ``frames`` by frequency.

    Each frame is resolved through its own color table, so identical colors
    stored at different indices or in different tables are merged under one
    key. Equal counts keep the order in which the colors were first met
    (frame order, then table index order).
    """

    totals: Dict[str, int] = {}
    first_rgb: Dict[str, ColorTuple] = {}
    for frame in frames:
        counts = _visible_index_counts(frame)
        for index in np.flatnonzero(counts).tolist():
            rgb = tuple(int(c) for c in frame.color_table[index])
            key = key_of(rgb)  # type: ignore[arg-type]
            if key not in totals:
                totals[key] = 0
                first_rgb[key] = rgb  # type: ignore[assignment]
            totals[key] += int(counts[index])

    palette = [ColorCount(color=key, count=count, rgb=first_rgb[key]) for key, count in totals.items()]
    palette.sort(key=lambda entry: entry.count, reverse=True)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "extract_palette frames=%s colors=%s top=%s",
            len(frames),
            len(palette),
            [(entry.color, entry.count) for entry in palette[:5]],
        )
    return palette


def find_color(palette: Sequence[ColorCount], key: str) -> ColorCount | None:
    for entry in palette:
        if entry.color == key:
            return entry
    return None
