#!/usr/bin/env python3
# Copyright (C) 2026 Alex Stoyanov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with this program.
# If not, see <https://www.gnu.org/licenses/>.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

PageSize = Literal["A4", "A3", "Letter"]
Orientation = Literal["portrait", "landscape"]

PT_TO_MM = 0.3527777778

# Portrait width/height in millimetres.
_PAGE_SIZES_MM: dict[str, tuple[float, float]] = {
    "A4": (210.0, 297.0),
    "A3": (297.0, 420.0),
    "LETTER": (215.9, 279.4),
}

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
_SHORT_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F])([0-9a-fA-F])([0-9a-fA-F])$")

Rgb = tuple[int, int, int]

BLACK: Rgb = (0, 0, 0)
WHITE: Rgb = (255, 255, 255)


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def translate(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Margins:
    top: float = 15.0
    right: float = 15.0
    bottom: float = 15.0
    left: float = 15.0


def page_dimensions(size: str, orientation: str) -> tuple[float, float]:
    key = size.strip().upper()
    if key not in _PAGE_SIZES_MM:
        raise ValueError(f"unsupported page size: {size}")
    width, height = _PAGE_SIZES_MM[key]
    if orientation == "landscape":
        width, height = height, width
    return width, height


def parse_color(value: object, *, default: Rgb | None = None) -> Rgb | None:
    if isinstance(value, (list, tuple)) and len(value) == 3:
        try:
            return (int(value[0]), int(value[1]), int(value[2]))
        except (TypeError, ValueError):
            return default
    if not isinstance(value, str):
        return default
    text = value.strip()
    match = _HEX_COLOR.match(text)
    if match:
        return (int(match[1], 16), int(match[2], 16), int(match[3], 16))
    match = _SHORT_HEX_COLOR.match(text)
    if match:
        return (int(match[1] * 2, 16), int(match[2] * 2, 16), int(match[3] * 2, 16))
    return default


def font_line_height(size_pt: float, multiplier: float = 1.2) -> float:
    return float(size_pt) * PT_TO_MM * multiplier


__all__ = [
    "BLACK",
    "Margins",
    "Orientation",
    "PT_TO_MM",
    "PageSize",
    "Point",
    "Rgb",
    "Size",
    "WHITE",
    "font_line_height",
    "page_dimensions",
    "parse_color",
]
