"""Loaded-animation state: palette, mappings and remapped frames."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from PIL import Image

from . import mapping_table
from .compositor import MAX_ZOOM, MIN_ZOOM, Compositor, canvas_size, frame_bitmap, zoom_bitmap
from .frames import Frame
from .gif_decoder import FrameDecodeError, decode_gif
from .mapping_table import ColorMapping
from .palette_ops import ColorCount, extract_palette, find_color
from .playback import PlaybackClock
from .remap import remap_frames


logger = logging.getLogger(__name__)

DECODE_ERROR_MESSAGE = "Failed to parse GIF file"


def clamp_zoom(value: int) -> int:
    return max(MIN_ZOOM, min(MAX_ZOOM, int(value)))


@dataclass(slots=True)
class ViewOptions:
    zoom: int = 3
    show_unrolled: bool = False
    autoplay: bool = True


class RecolorSession:
    """Owns one loaded animation and everything derived from it.

    Mapping changes always rebuild ``remapped_frames`` from ``frames``.
    A load computes every derived collection before replacing the old ones.
    """

    def __init__(self, options: ViewOptions | None = None) -> None:
        self.options = options or ViewOptions()
        self.options.zoom = clamp_zoom(self.options.zoom)
        self.frames: List[Frame] = []
        self.palette: List[ColorCount] = []
        self.mappings: List[ColorMapping] = []
        self.remapped_frames: List[Frame] = []
        self.selected: ColorCount | None = None
        self.canvas_width = 0
        self.canvas_height = 0
        self.error: str | None = None
        self.clock = PlaybackClock()
        self._original_compositor = Compositor(0, 0)
        self._remapped_compositor = Compositor(0, 0)

    @property
    def loaded(self) -> bool:
        return bool(self.frames)

    # Loading -------------------------------------------------------------

    def load_bytes(self, data: bytes) -> bool:
        try:
            frames = decode_gif(data)
        except FrameDecodeError as exc:
            logger.error("GIF decode failed: %s", exc)
            self.error = DECODE_ERROR_MESSAGE
            return False
        self._publish(frames)
        return True

    def load_path(self, path: Path) -> bool:
        try:
            data = path.read_bytes()
        except OSError as exc:
            logger.error("Cannot read %s: %s", path, exc)
            self.error = DECODE_ERROR_MESSAGE
            return False
        return self.load_bytes(data)

    def load_frames(self, frames: List[Frame]) -> None:
        """Adopt already-decoded frames."""

        self._publish([frame.copy() for frame in frames])

    def _publish(self, frames: List[Frame]) -> None:
        palette = extract_palette(frames)
        remapped = remap_frames(frames, [])
        width, height = canvas_size(frames)
        original_compositor = Compositor(width, height)
        remapped_compositor = Compositor(width, height)

        self.frames = frames
        self.palette = palette
        self.mappings = mapping_table.clear()
        self.remapped_frames = remapped
        self.selected = None
        self.canvas_width, self.canvas_height = width, height
        self._original_compositor = original_compositor
        self._remapped_compositor = remapped_compositor
        self.error = None
        self.clock.reset([frame.delay for frame in frames])
        if self.options.autoplay:
            self.clock.play()
        logger.info(
            "Loaded animation frames=%s canvas=%sx%s colors=%s",
            len(frames),
            width,
            height,
            len(palette),
        )

    # Mapping edits ---------------------------------------------------------

    def _set_mappings(self, mappings: List[ColorMapping]) -> None:
        remapped = remap_frames(self.frames, mappings)
        self.mappings = mappings
        self.remapped_frames = remapped

    def select_color(self, color: ColorCount | str) -> ColorCount | None:
        if isinstance(color, str):
            found = find_color(self.palette, color)
            if found is None:
                logger.warning("Color %s is not in the palette", color)
                return None
            color = found
        self.selected = color
        mappings = mapping_table.select(self.mappings, color)
        if len(mappings) != len(self.mappings):
            self._set_mappings(mappings)
        return color

    def update_mapping(self, original_color: str, new_hex: str) -> bool:
        mappings = mapping_table.update(self.mappings, original_color, new_hex)
        if mappings == self.mappings:
            return False
        self._set_mappings(mappings)
        return True

    def update_selected(self, new_hex: str) -> bool:
        if self.selected is None:
            return False
        return self.update_mapping(self.selected.color, new_hex)

    def reset_mapping(self, original_color: str) -> None:
        self._set_mappings(mapping_table.reset(self.mappings, original_color))

    def remove_mapping(self, original_color: str) -> None:
        self._set_mappings(mapping_table.remove(self.mappings, original_color))
        if self.selected is not None and self.selected.color == original_color:
            self.selected = None

    def clear_mappings(self) -> None:
        self._set_mappings(mapping_table.clear())

    def is_remapped(self, color: str) -> bool:
        return mapping_table.is_remapped(self.mappings, color)

    # Rendering -------------------------------------------------------------

    def set_zoom(self, zoom: int) -> int:
        self.options.zoom = clamp_zoom(zoom)
        return self.options.zoom

    def render(self, index: int | None = None, *, remapped: bool = False) -> Image.Image | None:
        """Composite frame ``index`` (default: the clock's frame) at the current zoom."""

        frames = self.remapped_frames if remapped else self.frames
        if not frames:
            return None
        if index is None:
            index = self.clock.index
        compositor = self._remapped_compositor if remapped else self._original_compositor
        bitmap = compositor.composite(frames[index % len(frames)])
        return zoom_bitmap(bitmap, self.options.zoom)

    def render_unrolled(self, *, remapped: bool = False) -> List[Image.Image]:
        frames = self.remapped_frames if remapped else self.frames
        return [frame_bitmap(frame, self.options.zoom) for frame in frames]

    def tick(self, elapsed_ms: float) -> bool:
        return self.clock.tick(elapsed_ms)
