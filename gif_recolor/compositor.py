"""Frame compositing onto the logical animation canvas."""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from .frames import Frame


logger = logging.getLogger(__name__)

MIN_ZOOM = 1
MAX_ZOOM = 10


def canvas_size(frames: Sequence[Frame]) -> Tuple[int, int]:
    """Return the animation canvas size covering every frame's placement."""

    width = 0
    height = 0
    for frame in frames:
        width = max(width, frame.dims.left + frame.dims.width)
        height = max(height, frame.dims.top + frame.dims.height)
    return width, height


def _check_zoom(zoom: int) -> int:
    if isinstance(zoom, bool) or not isinstance(zoom, int) or not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise ValueError(f"Zoom must be an integer between {MIN_ZOOM} and {MAX_ZOOM}, got {zoom!r}")
    return zoom


def _to_image(rgba: np.ndarray) -> Image.Image:
    height, width = rgba.shape[:2]
    if width == 0 or height == 0:
        return Image.new("RGBA", (width, height))
    return Image.fromarray(rgba)


def zoom_bitmap(bitmap: Image.Image, zoom: int) -> Image.Image:
    """Scale ``bitmap`` by an integer factor without smoothing."""

    _check_zoom(zoom)
    width, height = bitmap.size
    if zoom == 1:
        return bitmap.copy()
    if width == 0 or height == 0:
        return Image.new(bitmap.mode, (width * zoom, height * zoom))
    return bitmap.resize((width * zoom, height * zoom), Image.NEAREST)


class Compositor:
    """Draws frames onto a persistent RGBA canvas.

    The scratch surface is resized per frame and reused between calls; the
    bitmaps handed out are copies, so callers may keep them.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        self._canvas = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self._scratch = np.zeros((0, 0, 4), dtype=np.uint8)

    @classmethod
    def for_frames(cls, frames: Sequence[Frame]) -> "Compositor":
        return cls(*canvas_size(frames))

    def clear(self) -> None:
        self._canvas.fill(0)

    def _load_scratch(self, frame: Frame) -> np.ndarray:
        shape = (frame.dims.height, frame.dims.width, 4)
        if self._scratch.shape != shape:
            self._scratch = np.empty(shape, dtype=np.uint8)
        self._scratch[...] = frame.rgba_array()
        return self._scratch

    def draw(self, frame: Frame) -> None:
        """Draw ``frame`` at its offset; transparent pixels keep the canvas."""

        surface = self._load_scratch(frame)
        left, top = frame.dims.left, frame.dims.top
        x0 = max(0, left)
        y0 = max(0, top)
        x1 = min(self.width, left + frame.dims.width)
        y1 = min(self.height, top + frame.dims.height)
        if x1 <= x0 or y1 <= y0:
            logger.debug(
                "Frame at (%s,%s) size %sx%s lies outside canvas %sx%s",
                left,
                top,
                frame.dims.width,
                frame.dims.height,
                self.width,
                self.height,
            )
            return
        source = surface[y0 - top : y1 - top, x0 - left : x1 - left]
        target = self._canvas[y0:y1, x0:x1]
        opaque = source[..., 3] > 0
        target[opaque] = source[opaque]

    def composite(self, frame: Frame, *, clear: bool = True) -> Image.Image:
        if clear:
            self.clear()
        self.draw(frame)
        return self.bitmap()

    def bitmap(self) -> Image.Image:
        return _to_image(self._canvas.copy())


def composite_frame(frame: Frame, canvas_width: int, canvas_height: int) -> Image.Image:
    return Compositor(canvas_width, canvas_height).composite(frame)


def frame_bitmap(frame: Frame, zoom: int = 1) -> Image.Image:
    """Render ``frame`` at its own size, ignoring its canvas offset."""

    bitmap = _to_image(frame.rgba_array().copy())
    return zoom_bitmap(bitmap, zoom)


def render_strip(frames: Sequence[Frame], zoom: int = 1, spacing: int = 0) -> Image.Image:
    """Lay every frame side by side at ``zoom``, top-aligned."""

    tiles: List[Image.Image] = [frame_bitmap(frame, zoom) for frame in frames]
    if not tiles:
        return Image.new("RGBA", (1, 1), (0, 0, 0, 0))
    width = sum(tile.width for tile in tiles) + spacing * (len(tiles) - 1)
    height = max(tile.height for tile in tiles)
    strip = Image.new("RGBA", (max(1, width), max(1, height)), (0, 0, 0, 0))
    x = 0
    for tile in tiles:
        strip.paste(tile, (x, 0))
        x += tile.width + spacing
    return strip
