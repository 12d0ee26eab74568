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

import unicodedata
from typing import Sequence

from fpdf import FPDF

from .geometry import font_line_height
from .template_model import TemplateConfig

# Letters without a canonical decomposition to an encodable base.
_TRANSLITERATIONS = str.maketrans(
    {
        "ı": "i",
        "ł": "l",
        "Ł": "L",
        "đ": "d",
        "Đ": "D",
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "–": "-",
        "—": "-",
        "…": "...",
        "•": "-",
    }
)

TEXT_LINE_MULTIPLIER = 1.15


def page_format(config: TemplateConfig) -> str:
    return config.page_size


def page_orientation(config: TemplateConfig) -> str:
    return "L" if config.orientation == "landscape" else "P"


def font_style(weight: object) -> str:
    normalized = str(weight or "").strip().lower()
    if normalized in {"bold", "700", "800", "900", "bolder"}:
        return "B"
    if normalized == "italic":
        return "I"
    if normalized in {"bolditalic", "bold-italic", "bold italic"}:
        return "BI"
    return ""


def text_line_height(size_pt: float) -> float:
    return font_line_height(size_pt, multiplier=TEXT_LINE_MULTIPLIER)


def core_font_text(text: str) -> str:
    """Reduce ``text`` to what the built-in latin-1 PDF fonts can encode."""
    try:
        text.encode("latin-1")
        return text
    except UnicodeEncodeError:
        pass
    chars: list[str] = []
    for ch in text.translate(_TRANSLITERATIONS):
        try:
            ch.encode("latin-1")
            chars.append(ch)
            continue
        except UnicodeEncodeError:
            pass
        decomposed = unicodedata.normalize("NFKD", ch)
        base = "".join(part for part in decomposed if not unicodedata.combining(part))
        try:
            base.encode("latin-1")
            chars.append(base or "?")
        except UnicodeEncodeError:
            chars.append("?")
    return "".join(chars)


def wrap_lines_to_width(pdf: FPDF, lines: Sequence[str], max_width: float) -> list[str]:
    wrapped: list[str] = []
    for line in lines:
        if not line:
            wrapped.append("")
            continue
        words = line.split(" ")
        current = ""
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if pdf.get_string_width(candidate) <= max_width:
                current = candidate
                continue
            if current:
                wrapped.append(current)
                current = ""
            if pdf.get_string_width(word) <= max_width:
                current = word
                continue
            parts: list[str] = []
            chunk = ""
            for ch in word:
                next_chunk = f"{chunk}{ch}"
                if chunk and pdf.get_string_width(next_chunk) > max_width:
                    parts.append(chunk)
                    chunk = ch
                else:
                    chunk = next_chunk
            if chunk:
                parts.append(chunk)
            wrapped.extend(parts[:-1])
            current = parts[-1] if parts else ""
        if current:
            wrapped.append(current)
    return wrapped


def wrap_text(pdf: FPDF, text: str, max_width: float) -> list[str]:
    return wrap_lines_to_width(pdf, text.splitlines() or [""], max_width)


def fit_to_width(pdf: FPDF, text: str, max_width: float) -> str:
    if pdf.get_string_width(text) <= max_width:
        return text
    ellipsis = "..."
    trimmed = text
    while trimmed and pdf.get_string_width(trimmed + ellipsis) > max_width:
        trimmed = trimmed[:-1]
    return trimmed + ellipsis if trimmed else ""
