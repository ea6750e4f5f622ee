"""Ordered original->replacement color mappings.

Every function returns a new list and leaves its arguments untouched. The
``original_color`` key is unique within a table.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Sequence

from .color_keys import ColorTuple, hex_to_rgb, validate_hex
from .palette_ops import ColorCount


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ColorMapping:
    original_color: str
    original_rgb: ColorTuple
    new_color: str
    new_rgb: ColorTuple

    @property
    def changed(self) -> bool:
        return tuple(self.new_rgb) != tuple(self.original_rgb)


def find_mapping(mappings: Sequence[ColorMapping], original_color: str) -> ColorMapping | None:
    for mapping in mappings:
        if mapping.original_color == original_color:
            return mapping
    return None


def select(mappings: Sequence[ColorMapping], color: ColorCount) -> List[ColorMapping]:
    """Add a self-mapping placeholder for ``color`` unless one exists."""

    if find_mapping(mappings, color.color) is not None:
        return list(mappings)
    placeholder = ColorMapping(
        original_color=color.color,
        original_rgb=color.rgb,
        new_color=color.color,
        new_rgb=color.rgb,
    )
    return [*mappings, placeholder]


def update(mappings: Sequence[ColorMapping], original_color: str, new_hex: str) -> List[ColorMapping]:
    validated = validate_hex(new_hex)
    if validated is None:
        logger.warning("Invalid hex color: %r", new_hex)
        return list(mappings)
    new_rgb = hex_to_rgb(validated)
    return [
        replace(mapping, new_color=validated, new_rgb=new_rgb)
        if mapping.original_color == original_color
        else mapping
        for mapping in mappings
    ]


def reset(mappings: Sequence[ColorMapping], original_color: str) -> List[ColorMapping]:
    """Point the entry for ``original_color`` back at its own color."""

    return [
        replace(mapping, new_color=mapping.original_color, new_rgb=mapping.original_rgb)
        if mapping.original_color == original_color
        else mapping
        for mapping in mappings
    ]


def remove(mappings: Sequence[ColorMapping], original_color: str) -> List[ColorMapping]:
    return [mapping for mapping in mappings if mapping.original_color != original_color]


def clear() -> List[ColorMapping]:
    return []


def is_remapped(mappings: Sequence[ColorMapping], original_color: str) -> bool:
    mapping = find_mapping(mappings, original_color)
    return mapping is not None and mapping.changed
