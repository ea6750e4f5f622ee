import struct
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import pytest

from gif_recolor.frames import Frame, FrameDims


RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


@dataclass
class GifFrameBlock:
    width: int
    height: int
    pixels: Sequence[int]
    left: int = 0
    top: int = 0
    local_table: Optional[Sequence[Tuple[int, int, int]]] = None
    transparent_index: Optional[int] = None
    delay_ms: int = 0
    disposal: int = 0
    interlaced: bool = False
    extra_extensions: List[bytes] = field(default_factory=list)


def _table_bits(count: int) -> int:
    bits = 1
    while (1 << bits) < count:
        bits += 1
    return bits


def _table_bytes(table: Sequence[Tuple[int, int, int]]) -> Tuple[bytes, int]:
    bits = _table_bits(len(table))
    padded = list(table) + [(0, 0, 0)] * ((1 << bits) - len(table))
    return b"".join(bytes(color) for color in padded), bits


def _uncompressed_lzw(indices: Sequence[int], min_code_size: int) -> bytes:
    # A clear code before every literal keeps the code width fixed.
    clear = 1 << min_code_size
    code_size = min_code_size + 1
    codes: List[int] = []
    for index in indices:
        codes.extend((clear, index))
    codes.append(clear + 1)
    out = bytearray()
    buffer = 0
    count = 0
    for code in codes:
        buffer |= code << count
        count += code_size
        while count >= 8:
            out.append(buffer & 0xFF)
            buffer >>= 8
            count -= 8
    if count:
        out.append(buffer & 0xFF)
    return bytes(out)


def _sub_blocks(data: bytes) -> bytes:
    out = bytearray()
    for start in range(0, len(data), 255):
        chunk = data[start : start + 255]
        out.append(len(chunk))
        out.extend(chunk)
    out.append(0)
    return bytes(out)


def _interlace_rows(pixels: Sequence[int], width: int, height: int) -> List[int]:
    rows = [list(pixels[y * width : (y + 1) * width]) for y in range(height)]
    order: List[int] = []
    for start, step in ((0, 8), (4, 8), (2, 4), (1, 2)):
        order.extend(range(start, height, step))
    return [value for y in order for value in rows[y]]


def build_gif(
    width: int,
    height: int,
    frames: Sequence[GifFrameBlock],
    global_table: Optional[Sequence[Tuple[int, int, int]]] = None,
) -> bytes:
    out = bytearray(b"GIF89a")
    flags = 0
    table_data = b""
    if global_table:
        table_data, bits = _table_bytes(global_table)
        flags = 0x80 | (bits - 1)
    out += struct.pack("<HHBBB", width, height, flags, 0, 0)
    out += table_data
    for block in frames:
        for extension in block.extra_extensions:
            out += extension
        packed = (block.disposal & 0x07) << 2
        transparent = 0
        if block.transparent_index is not None:
            packed |= 0x01
            transparent = block.transparent_index
        out += b"\x21\xf9\x04" + struct.pack("<BHB", packed, block.delay_ms // 10, transparent) + b"\x00"
        image_flags = 0x40 if block.interlaced else 0
        local = b""
        table_size = len(global_table or [])
        if block.local_table:
            local, bits = _table_bytes(block.local_table)
            image_flags |= 0x80 | (bits - 1)
            table_size = len(block.local_table)
        out += b"\x2c" + struct.pack("<HHHHB", block.left, block.top, block.width, block.height, image_flags)
        out += local
        min_code_size = max(2, _table_bits(table_size))
        pixels = list(block.pixels)
        if block.interlaced:
            pixels = _interlace_rows(pixels, block.width, block.height)
        out.append(min_code_size)
        out += _sub_blocks(_uncompressed_lzw(pixels, min_code_size))
    out.append(0x3B)
    return bytes(out)


@pytest.fixture
def two_color_frame():
    return Frame.from_indices(FrameDims(width=2, height=2), [0, 0, 1, 1], [RED, GREEN])


@pytest.fixture
def transparent_frames():
    """Two frames with distinct tables; index 2 is transparent in both."""

    first = Frame.from_indices(
        FrameDims(width=3, height=2),
        [0, 1, 2, 0, 0, 2],
        [RED, GREEN, WHITE],
        transparent_index=2,
        delay=100,
    )
    second = Frame.from_indices(
        FrameDims(width=2, height=2, top=1, left=2),
        [1, 0, 2, 1],
        [BLUE, RED, (9, 9, 9)],
        transparent_index=2,
        delay=50,
    )
    return [first, second]


@pytest.fixture
def sample_gif_bytes():
    return build_gif(
        4,
        3,
        [
            GifFrameBlock(width=4, height=3, pixels=[0, 0, 1, 1, 0, 2, 2, 1, 3, 3, 3, 3], delay_ms=100),
            GifFrameBlock(
                width=2,
                height=2,
                left=1,
                top=1,
                pixels=[1, 3, 3, 1],
                transparent_index=3,
                delay_ms=70,
                disposal=1,
            ),
        ],
        global_table=[RED, GREEN, BLUE, WHITE],
    )


def with_declared_size(data: bytes, width: int, height: int) -> bytes:
    """Rewrite the first image descriptor's width and height."""

    start = data.index(b"\x2c") + 5
    return data[:start] + struct.pack("<HH", width, height) + data[start + 4 :]
