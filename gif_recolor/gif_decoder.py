"""GIF container decoding into per-frame index buffers.

Pillow composites GIF frames as it seeks and drops local color tables, so the
raw frame data needed for palette remapping is read here directly.
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import List

import numpy as np

from .color_keys import ColorTuple
from .frames import Frame, FrameDims


logger = logging.getLogger(__name__)

_SIGNATURES = {b"GIF87a", b"GIF89a"}
_EXTENSION_INTRODUCER = 0x21
_IMAGE_SEPARATOR = 0x2C
_TRAILER = 0x3B
_GRAPHIC_CONTROL_LABEL = 0xF9
_MAX_CODE_SIZE = 12
MAX_FRAME_PIXELS = 4096 * 4096


class FrameDecodeError(RuntimeError):
    """Raised when GIF data cannot be decoded into frames."""


@dataclass(slots=True)
class _GraphicControl:
    delay: int = 0
    disposal_type: int = 0
    transparent_index: int | None = None


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def read(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise FrameDecodeError(f"Unexpected end of GIF data at offset {self.pos}")
        chunk = self.data[self.pos : end]
        self.pos = end
        return chunk

    def byte(self) -> int:
        return self.read(1)[0]

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def sub_blocks(self) -> bytes:
        chunks = bytearray()
        while True:
            size = self.byte()
            if size == 0:
                return bytes(chunks)
            chunks.extend(self.read(size))

    def color_table(self, size: int) -> List[ColorTuple]:
        raw = self.read(size * 3)
        return [(raw[i], raw[i + 1], raw[i + 2]) for i in range(0, len(raw), 3)]


def lzw_decode(data: bytes, min_code_size: int, pixel_count: int) -> bytearray:
    """Decode GIF LZW image data, stopping after ``pixel_count`` indices."""

    if not 1 <= min_code_size <= 11:
        raise FrameDecodeError(f"Invalid LZW minimum code size {min_code_size}")
    clear_code = 1 << min_code_size
    end_code = clear_code + 1
    base_table = [bytes((i,)) for i in range(clear_code)] + [b"", b""]

    table = list(base_table)
    code_size = min_code_size + 1
    previous: bytes | None = None
    output = bytearray()
    bit_buffer = 0
    bit_count = 0
    pos = 0

    while len(output) < pixel_count:
        while bit_count < code_size:
            if pos >= len(data):
                return output
            bit_buffer |= data[pos] << bit_count
            pos += 1
            bit_count += 8
        code = bit_buffer & ((1 << code_size) - 1)
        bit_buffer >>= code_size
        bit_count -= code_size

        if code == clear_code:
            table = list(base_table)
            code_size = min_code_size + 1
            previous = None
            continue
        if code == end_code:
            break

        if previous is None:
            if code >= clear_code:
                raise FrameDecodeError(f"Invalid first LZW code {code}")
            entry = table[code]
        elif code < len(table):
            entry = table[code]
            if len(table) < 1 << _MAX_CODE_SIZE:
                table.append(previous + entry[:1])
        elif code == len(table):
            entry = previous + previous[:1]
            if len(table) < 1 << _MAX_CODE_SIZE:
                table.append(entry)
        else:
            raise FrameDecodeError(f"Invalid LZW code {code} (table size {len(table)})")

        if len(table) == 1 << code_size and code_size < _MAX_CODE_SIZE:
            code_size += 1
        output.extend(entry)
        previous = entry

    return output


def _deinterlace(indices: np.ndarray, width: int, height: int) -> np.ndarray:
    rows = indices.reshape((height, width))
    order: List[int] = []
    for start, step in ((0, 8), (4, 8), (2, 4), (1, 2)):
        order.extend(range(start, height, step))
    result = np.empty_like(rows)
    result[order] = rows
    return result.reshape(-1)


def _parse_graphic_control(payload: bytes) -> _GraphicControl:
    if len(payload) < 4:
        logger.debug("Short graphic control extension (%s bytes)", len(payload))
        return _GraphicControl()
    packed, delay_cs, transparent = struct.unpack("<BHB", payload[:4])
    return _GraphicControl(
        delay=delay_cs * 10,
        disposal_type=(packed >> 2) & 0x07,
        transparent_index=transparent if packed & 0x01 else None,
    )


def _read_frame(
    reader: _Reader, global_table: List[ColorTuple], control: _GraphicControl, frame_number: int
) -> Frame:
    left, top, width, height, flags = struct.unpack("<HHHHB", reader.read(9))
    interlaced = bool(flags & 0x40)
    color_table = global_table
    if flags & 0x80:
        color_table = reader.color_table(1 << ((flags & 0x07) + 1))
    min_code_size = reader.byte()
    data = reader.sub_blocks()

    pixel_count = width * height
    if pixel_count > MAX_FRAME_PIXELS:
        raise FrameDecodeError(
            f"Frame {frame_number} declares {width}x{height} pixels, limit is {MAX_FRAME_PIXELS}"
        )
    decoded = lzw_decode(data, min_code_size, pixel_count) if pixel_count else bytearray()
    filled = min(len(decoded), pixel_count)
    # Small shortfalls are padded; anything below half the declared area is rejected.
    if filled * 2 < pixel_count:
        raise FrameDecodeError(
            f"Frame {frame_number} holds {filled} of {pixel_count} declared pixels"
        )
    indices = np.zeros(pixel_count, dtype=np.int32)
    if filled:
        indices[:filled] = np.frombuffer(bytes(decoded[:filled]), dtype=np.uint8)
    if filled < pixel_count:
        logger.debug(
            "Frame %s truncated: %s of %s pixels decoded, padding with index 0",
            frame_number,
            filled,
            pixel_count,
        )
    if interlaced and pixel_count:
        indices = _deinterlace(indices, width, height)

    return Frame.from_indices(
        FrameDims(width=width, height=height, top=top, left=left),
        indices,
        color_table,
        transparent_index=control.transparent_index,
        delay=control.delay,
        disposal_type=control.disposal_type,
    )


def decode_gif(data: bytes) -> List[Frame]:
    """Decode every image in a GIF stream into a :class:`Frame`."""

    reader = _Reader(bytes(data))
    signature = reader.read(6) if len(data) >= 6 else b""
    if signature not in _SIGNATURES:
        raise FrameDecodeError("Not a GIF file (bad signature)")
    _screen_width, _screen_height, flags, _background, _aspect = struct.unpack(
        "<HHBBB", reader.read(7)
    )
    global_table: List[ColorTuple] = []
    if flags & 0x80:
        global_table = reader.color_table(1 << ((flags & 0x07) + 1))

    frames: List[Frame] = []
    control = _GraphicControl()
    while not reader.at_end():
        block = reader.byte()
        if block == _TRAILER:
            break
        if block == _EXTENSION_INTRODUCER:
            label = reader.byte()
            payload = reader.sub_blocks()
            if label == _GRAPHIC_CONTROL_LABEL:
                control = _parse_graphic_control(payload)
            continue
        if block == _IMAGE_SEPARATOR:
            frames.append(_read_frame(reader, global_table, control, len(frames)))
            control = _GraphicControl()
            continue
        raise FrameDecodeError(f"Unknown GIF block 0x{block:02x} at offset {reader.pos - 1}")

    if not frames:
        raise FrameDecodeError("GIF contains no image frames")
    logger.debug(
        "decode_gif frames=%s global_colors=%s",
        len(frames),
        len(global_table),
    )
    return frames


def load_gif(path: Path) -> List[Frame]:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FrameDecodeError(f"Cannot read {path}: {exc}") from exc
    return decode_gif(data)
