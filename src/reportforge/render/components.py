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

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable

from fpdf import FPDF
from fpdf.errors import FPDFException

from ..config import EngineConfig
from ..errors import AssetError
from .assets import LOGO_SENTINEL, AssetResolver
from .geometry import BLACK, Point, Rgb, Size, parse_color
from .resolver import (
    UNRESOLVED,
    evaluate_conditions,
    has_tokens,
    resolve,
    resolve_style_value,
    stringify,
    substitute_tokens,
)
from .template_model import (
    DEFAULT_BODY_SIZE,
    DEFAULT_FONT_FAMILY,
    FontStyle,
    TableColumn,
    TableSpec,
    TemplateComponent,
    TemplateDefinition,
)
from .text import core_font_text, fit_to_width, font_style, text_line_height, wrap_text

logger = logging.getLogger(__name__)

DEFAULT_RECT_SIZE = Size(50.0, 20.0)
DEFAULT_LINE_SIZE = Size(100.0, 0.0)
DEFAULT_IMAGE_WIDTH_MM = 50.0
DEFAULT_TABLE_WIDTH_MM = 100.0
DEFAULT_LINE_WIDTH_MM = 0.3
PLACEHOLDER_SIZE = Size(50.0, 30.0)
PLACEHOLDER_FILL: Rgb = (240, 240, 240)
PLACEHOLDER_TEXT: Rgb = (110, 110, 110)
TABLE_HEADER_FILL: Rgb = (200, 200, 200)
TABLE_BORDER: Rgb = (180, 180, 180)
TABLE_FONT_SIZE = 10.0

_PLACEHOLDER_LABELS = {
    "image": "Image unavailable",
    "table": "Table unavailable",
}


@dataclass(frozen=True)
class RenderIssue:
    component_id: str
    component_type: str
    message: str
    page: int = 0
    error: BaseException | None = field(default=None, compare=False)


@dataclass(frozen=True)
class PaintedElement:
    page: int
    component_id: str
    kind: str
    text: str = ""
    x: float = 0.0
    y: float = 0.0


@dataclass
class RenderContext:
    """Per-pass painting state shared by the renderers.

    One context belongs to exactly one FPDF document; nothing here is shared
    between render calls.
    """

    pdf: FPDF
    definition: TemplateDefinition
    settings: EngineConfig
    assets: AssetResolver
    default_family: str = DEFAULT_FONT_FAMILY
    unicode_fonts: frozenset[str] = frozenset()
    trace: list[PaintedElement] = field(default_factory=list)
    issues: list[RenderIssue] = field(default_factory=list)

    @property
    def page(self) -> int:
        return self.pdf.page

    @property
    def usable_bottom(self) -> float:
        """Lowest y content may reach: above the bottom margin and the footer reserve."""
        margins = self.definition.config.margins
        return self.pdf.h - margins.bottom - self.settings.layout.footer_reserve_mm

    @property
    def palette(self) -> Mapping[str, str]:
        merged = dict(self.definition.config.colors)
        merged.update(self.definition.styles.colors)
        return MappingProxyType(merged)

    def named_font(self, name: object) -> FontStyle | None:
        if not isinstance(name, str):
            return None
        return self.definition.styles.fonts.get(name)

    def color(
        self,
        value: object,
        scope: object,
        repeat_index: int | None,
        *,
        default: Rgb | None,
    ) -> Rgb | None:
        if value is None or value == "":
            return default
        resolved = resolve_style_value(value, scope, repeat_index=repeat_index, palette=self.palette)
        return parse_color(resolved, default=default)

    def encode(self, text: str) -> str:
        if self.pdf.font_family in self.unicode_fonts:
            return text
        return core_font_text(text)

    def record(self, component_id: str, kind: str, origin: Point, text: str = "") -> None:
        self.trace.append(
            PaintedElement(
                page=self.page,
                component_id=component_id,
                kind=kind,
                text=text,
                x=round(origin.x, 3),
                y=round(origin.y, 3),
            )
        )


Renderer = Callable[[RenderContext, TemplateComponent, Point, object, "int | None"], None]


def render_component(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    scope: object,
    repeat_index: int | None = None,
) -> RenderIssue | None:
    """Paint one component at ``origin`` (already translated by its section).

    Returns ``None`` on success or when the component is suppressed, and a
    :class:`RenderIssue` when painting failed. Never raises for paint errors.
    """
    if component.conditions and not evaluate_conditions(component.conditions, scope):
        return None
    renderer = _RENDERERS.get(component.type)
    if renderer is None:
        logger.debug("Skipping reserved component %s of type %s", component.id, component.type)
        return None
    try:
        renderer(ctx, component, origin, scope, repeat_index)
    except Exception as exc:
        return RenderIssue(
            component_id=component.id,
            component_type=component.type,
            message=str(exc) or exc.__class__.__name__,
            page=ctx.page,
            error=exc,
        )
    return None


def apply_fallback(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    issue: RenderIssue,
) -> None:
    logger.warning(
        "Component %s (%s) failed on page %d: %s",
        issue.component_id,
        issue.component_type,
        issue.page,
        issue.message,
    )
    ctx.issues.append(issue)
    label = _PLACEHOLDER_LABELS.get(component.type)
    if label is None:
        return
    try:
        paint_placeholder(ctx, component, origin, label)
    except (FPDFException, ValueError, TypeError) as exc:
        logger.warning("Placeholder for %s could not be drawn: %s", component.id, exc)


def paint_placeholder(ctx: RenderContext, component: TemplateComponent, origin: Point, label: str) -> None:
    size = _explicit_size(component) or PLACEHOLDER_SIZE
    pdf = ctx.pdf
    pdf.set_fill_color(*PLACEHOLDER_FILL)
    pdf.rect(origin.x, origin.y, size.width, size.height, style="F")
    pdf.set_font(DEFAULT_FONT_FAMILY, size=8)
    pdf.set_text_color(*PLACEHOLDER_TEXT)
    text = fit_to_width(pdf, label, max(size.width - 4.0, 1.0))
    pdf.text(origin.x + 2.0, origin.y + min(size.height / 2.0, size.height - 1.0), text)
    pdf.set_text_color(*BLACK)
    ctx.record(component.id, "placeholder", origin, label)


def paint_text(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    scope: object,
    repeat_index: int | None,
) -> None:
    content = component.content if isinstance(component.content, str) else ""
    text = content
    if component.data_binding and not has_tokens(content):
        bound = stringify(resolve(scope, component.data_binding))
        if bound:
            text = bound
    text = substitute_tokens(text, scope, repeat_index)
    if not text.strip():
        return

    size = _apply_text_style(ctx, component, scope, repeat_index)
    pdf = ctx.pdf
    text = ctx.encode(text)
    bounds = _explicit_size(component)
    if bounds is not None and bounds.width > 0:
        lines = wrap_text(pdf, text, bounds.width)
    else:
        lines = [" ".join(text.splitlines())]
    line_height = text_line_height(size)
    for index, line in enumerate(lines):
        if line:
            pdf.text(origin.x, origin.y + index * line_height, line)
    pdf.set_text_color(*BLACK)
    ctx.record(component.id, "text", origin, "\n".join(lines))


def _apply_text_style(
    ctx: RenderContext,
    component: TemplateComponent,
    scope: object,
    repeat_index: int | None,
) -> float:
    style = component.style
    named = ctx.named_font(style.get("textStyle"))
    pdf = ctx.pdf
    try:
        size = float(style.get("fontSize") or (named.size if named else DEFAULT_BODY_SIZE))
        weight = style.get("fontWeight") or (named.weight if named else None)
        family = str(style.get("fontFamily") or (named.family if named else ctx.default_family))
        color = ctx.color(
            style.get("color") or (named.color if named else None),
            scope,
            repeat_index,
            default=BLACK,
        )
        pdf.set_font(family.lower(), style=font_style(weight), size=size)
        pdf.set_text_color(*(color or BLACK))
        return size
    except (FPDFException, ValueError, TypeError) as exc:
        logger.warning("Style for %s could not be applied (%s); using defaults", component.id, exc)
        pdf.set_font(DEFAULT_FONT_FAMILY, style="", size=DEFAULT_BODY_SIZE)
        pdf.set_text_color(*BLACK)
        return DEFAULT_BODY_SIZE


def paint_image(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    scope: object,
    repeat_index: int | None,
) -> None:
    source: object = component.content
    if component.data_binding:
        bound = resolve(scope, component.data_binding)
        if bound is not UNRESOLVED and bound is not None and bound != "":
            source = bound
    if isinstance(source, str) and has_tokens(source):
        source = substitute_tokens(source, scope, repeat_index)
    if source is None or source == "":
        return
    logo = ctx.definition.config.logo
    is_logo = source == LOGO_SENTINEL
    if is_logo and logo is not None and logo.source != LOGO_SENTINEL:
        # The template names its own logo image.
        source = logo.source
    elif is_logo and not ctx.assets.has_logo:
        logger.debug("No logo configured; skipping %s", component.id)
        return

    image = ctx.assets.load(source)
    size = _explicit_size(component)
    if size is None and is_logo and logo is not None:
        size = Size(logo.width, logo.height)
    if size is None:
        ratio = image.height_px / image.width_px if image.width_px else 1.0
        size = Size(DEFAULT_IMAGE_WIDTH_MM, DEFAULT_IMAGE_WIDTH_MM * ratio)
    try:
        ctx.pdf.image(image.stream(), x=origin.x, y=origin.y, w=size.width, h=size.height)
    except (FPDFException, ValueError, OSError) as exc:
        raise AssetError(f"image could not be embedded: {exc}") from exc
    ctx.record(component.id, "image", origin, source if isinstance(source, str) and len(source) < 200 else "")


def paint_table(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    scope: object,
    repeat_index: int | None,
) -> None:
    layout = ctx.settings.layout
    spec = TableSpec.from_content(component.content, default_row_height=layout.table_row_height_mm)
    rows = resolve(scope, component.data_binding or "")
    if not isinstance(rows, Sequence) or isinstance(rows, (str, bytes)):
        logger.debug("Table %s has no row source; nothing to draw", component.id)
        return

    pdf = ctx.pdf
    size = _explicit_size(component)
    total_width = size.width if size is not None and size.width > 0 else DEFAULT_TABLE_WIDTH_MM
    widths = column_widths(spec.columns, total_width)
    row_height = spec.row_height
    font_size = float(component.style.get("fontSize") or TABLE_FONT_SIZE)
    bottom = ctx.usable_bottom
    y = origin.y
    if y + row_height > bottom:
        logger.debug("Table %s starts below the usable area; skipped", component.id)
        return

    header_fill = ctx.color(spec.header_fill, scope, repeat_index, default=TABLE_HEADER_FILL)
    border = ctx.color(component.style.get("borderColor"), scope, repeat_index, default=TABLE_BORDER)
    pdf.set_draw_color(*(border or TABLE_BORDER))
    pdf.set_line_width(0.2)
    pdf.set_fill_color(*(header_fill or TABLE_HEADER_FILL))
    pdf.set_font(ctx.default_family, style=font_style(spec.header_weight), size=font_size)
    pdf.set_text_color(*BLACK)
    headers = [ctx.encode(column.header) for column in spec.columns]
    _table_row(pdf, origin.x, y, widths, row_height, headers, fill=True)
    ctx.record(component.id, "table-header", Point(origin.x, y), " | ".join(headers))
    y += row_height

    pdf.set_font(ctx.default_family, style="", size=font_size)
    for index, row in enumerate(rows):
        if index >= layout.table_max_rows:
            logger.debug("Table %s capped at %d rows", component.id, layout.table_max_rows)
            break
        if y + row_height > bottom:
            logger.debug("Table %s stopped at row %d: page is full", component.id, index)
            break
        cells = [ctx.encode(_cell_text(row, column)) for column in spec.columns]
        _table_row(pdf, origin.x, y, widths, row_height, cells, fill=False)
        ctx.record(component.id, "table-row", Point(origin.x, y), " | ".join(cells))
        y += row_height


def _table_row(
    pdf: FPDF,
    x: float,
    y: float,
    widths: Sequence[float],
    height: float,
    values: Sequence[str],
    *,
    fill: bool,
) -> None:
    cell_x = x
    for width, value in zip(widths, values):
        pdf.set_xy(cell_x, y)
        text = fit_to_width(pdf, value, max(width - 2 * pdf.c_margin, 1.0))
        pdf.cell(width, height, text, border=1, fill=fill)
        cell_x += width


def _cell_text(row: object, column: TableColumn) -> str:
    if not column.field:
        return ""
    return stringify(resolve(row, column.field))


def column_widths(columns: Sequence[TableColumn], total_width: float) -> list[float]:
    known = sum(column.width for column in columns if column.width)
    unknown = sum(1 for column in columns if not column.width)
    filler = max(total_width - known, 0.0) / unknown if unknown else 0.0
    widths = [column.width if column.width else filler for column in columns]
    total = sum(widths)
    if total <= 0:
        return [total_width / len(columns)] * len(columns)
    scale = total_width / total
    return [width * scale for width in widths]


def paint_rectangle(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    scope: object,
    repeat_index: int | None,
) -> None:
    style = component.style
    size = _explicit_size(component) or DEFAULT_RECT_SIZE
    fill = ctx.color(style.get("fillColor"), scope, repeat_index, default=None)
    border_color = style.get("borderColor")
    border_width = style.get("borderWidth")
    named_border = ctx.definition.styles.borders.get(str(style.get("border") or ""))
    if named_border is not None:
        border_color = border_color or named_border.color
        border_width = border_width or named_border.width
    stroke = ctx.color(border_color, scope, repeat_index, default=None) if border_width else None

    pdf = ctx.pdf
    mode = ""
    if fill is not None:
        pdf.set_fill_color(*fill)
        mode += "F"
    if stroke is not None:
        pdf.set_draw_color(*stroke)
        pdf.set_line_width(float(border_width))
        mode = "D" + mode
    if not mode:
        return
    pdf.rect(origin.x, origin.y, size.width, size.height, style=mode)
    ctx.record(component.id, "rectangle", origin)


def paint_line(
    ctx: RenderContext,
    component: TemplateComponent,
    origin: Point,
    scope: object,
    repeat_index: int | None,
) -> None:
    style = component.style
    size = _explicit_size(component) or DEFAULT_LINE_SIZE
    color = ctx.color(style.get("color"), scope, repeat_index, default=BLACK)
    pdf = ctx.pdf
    pdf.set_draw_color(*(color or BLACK))
    pdf.set_line_width(float(style.get("width") or DEFAULT_LINE_WIDTH_MM))
    pdf.line(origin.x, origin.y, origin.x + size.width, origin.y + size.height)
    ctx.record(component.id, "line", origin)


def _explicit_size(component: TemplateComponent) -> Size | None:
    size = component.dimensions
    if size is None or (size.width <= 0 and size.height <= 0):
        return None
    return size


_RENDERERS: dict[str, Renderer] = {
    "text": paint_text,
    "image": paint_image,
    "table": paint_table,
    "rectangle": paint_rectangle,
    "line": paint_line,
}


__all__ = [
    "PaintedElement",
    "RenderContext",
    "RenderIssue",
    "apply_fallback",
    "column_widths",
    "paint_image",
    "paint_line",
    "paint_placeholder",
    "paint_rectangle",
    "paint_table",
    "paint_text",
    "render_component",
]
