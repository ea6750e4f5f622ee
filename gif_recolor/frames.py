"""Decoded frame model and index-to-RGBA expansion."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .color_keys import ColorTuple


@dataclass(slots=True)
class FrameDims:
    width: int
    height: int
    top: int = 0
    left: int = 0

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(slots=True, eq=False)
class Frame:
    """One decoded animation frame.

    ``pixels`` holds row-major palette indices and ``patch`` the matching RGBA
    bytes (4 per pixel). Both are numpy arrays; use :meth:`copy` rather than
    sharing them between frame sets.
    """

    dims: FrameDims
    delay: int
    disposal_type: int
    pixels: np.ndarray
    color_table: List[ColorTuple]
    transparent_index: int | None
    patch: np.ndarray

    @classmethod
    def from_indices(
        cls,
        dims: FrameDims,
        pixels: Sequence[int] | np.ndarray,
        color_table: Sequence[ColorTuple],
        *,
        transparent_index: int | None = None,
        delay: int = 0,
        disposal_type: int = 0,
    ) -> "Frame":
        index_array = np.array(pixels, dtype=np.int32).reshape(-1)
        if index_array.size != dims.width * dims.height:
            raise ValueError(
                f"Expected {dims.width * dims.height} pixel indices, got {index_array.size}"
            )
        table = [tuple(int(c) for c in color) for color in color_table]
        return cls(
            dims=FrameDims(dims.width, dims.height, dims.top, dims.left),
            delay=int(delay),
            disposal_type=int(disposal_type),
            pixels=index_array,
            color_table=table,  # type: ignore[arg-type]
            transparent_index=transparent_index,
            patch=expand_patch(index_array, table, transparent_index),  # type: ignore[arg-type]
        )

    @property
    def pixel_count(self) -> int:
        return int(self.pixels.size)

    def copy(self) -> "Frame":
        return Frame(
            dims=FrameDims(self.dims.width, self.dims.height, self.dims.top, self.dims.left),
            delay=self.delay,
            disposal_type=self.disposal_type,
            pixels=self.pixels.copy(),
            color_table=list(self.color_table),
            transparent_index=self.transparent_index,
            patch=self.patch.copy(),
        )

    def rgba_array(self) -> np.ndarray:
        """Return the patch reshaped to ``(height, width, 4)``."""

        expected = self.pixel_count * 4
        if self.patch.size != expected:
            raise ValueError(f"Patch holds {self.patch.size} bytes, expected {expected}")
        return self.patch.reshape((self.dims.height, self.dims.width, 4))


def color_table_array(color_table: Sequence[ColorTuple]) -> np.ndarray:
    if not color_table:
        return np.zeros((0, 3), dtype=np.uint8)
    return np.asarray(color_table, dtype=np.uint8).reshape((-1, 3))


def expand_patch(
    pixels: Sequence[int] | np.ndarray,
    color_table: Sequence[ColorTuple],
    transparent_index: int | None,
) -> np.ndarray:
    """Build the flat RGBA buffer for ``pixels`` looked up in ``color_table``.

    The transparent index keeps its table color but gets alpha 0. Indices with
    no table entry become transparent black.
    """

    indices = np.asarray(pixels, dtype=np.int64).reshape(-1)
    table = color_table_array(color_table)
    in_range = (indices >= 0) & (indices < len(table))

    rgba = np.zeros((indices.size, 4), dtype=np.uint8)
    if len(table):
        rgba[in_range, :3] = table[indices[in_range]]
    rgba[in_range, 3] = 255
    if transparent_index is not None:
        rgba[indices == transparent_index, 3] = 0
    return rgba.reshape(-1)
