"""Apply a mapping table to every frame of an animation."""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import numpy as np

from .color_keys import ColorTuple, key_of
from .frames import Frame, FrameDims, expand_patch
from .mapping_table import ColorMapping


logger = logging.getLogger(__name__)


def _remap_color_table(frame: Frame, lookup: Dict[str, ColorMapping]) -> List[ColorTuple]:
    table = list(frame.color_table)
    # Slots are rewritten per index, so every pixel sharing an index follows.
    for index in np.unique(frame.pixels).tolist():
        if index == frame.transparent_index or not 0 <= index < len(frame.color_table):
            continue
        mapping = lookup.get(key_of(frame.color_table[index]))
        if mapping is not None:
            table[index] = tuple(mapping.new_rgb)  # type: ignore[assignment]
    return table


def remap_frame(frame: Frame, lookup: Dict[str, ColorMapping]) -> Frame:
    table = _remap_color_table(frame, lookup)
    return Frame(
        dims=FrameDims(frame.dims.width, frame.dims.height, frame.dims.top, frame.dims.left),
        delay=frame.delay,
        disposal_type=frame.disposal_type,
        pixels=frame.pixels.copy(),
        color_table=table,
        transparent_index=frame.transparent_index,
        patch=expand_patch(frame.pixels, table, frame.transparent_index),
    )


def remap_frames(original_frames: Sequence[Frame], mappings: Sequence[ColorMapping]) -> List[Frame]:
    """Return a new frame set with ``mappings`` applied.

    The result never shares buffers with ``original_frames`` and is always
    built from the originals, so calling it again with the same arguments
    gives identical output.
    """

    if not mappings:
        return [frame.copy() for frame in original_frames]
    lookup = {mapping.original_color: mapping for mapping in mappings}
    remapped = [remap_frame(frame, lookup) for frame in original_frames]
    logger.debug("remap_frames frames=%s mappings=%s", len(original_frames), len(lookup))
    return remapped
