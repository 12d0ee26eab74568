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

"""Section placement and pagination.

Sections are visited in ascending ``position.y``. A non-repeatable section is a
single instance anchored at its declared position on whatever page is current.
A repeatable section expands to one instance per element of its bound sequence;
instances flow down the page from a cursor. On the first page the cursor starts
no higher than the section's declared ``y``, and a declared ``y`` past the usable
height moves the section to a new page; continuation pages flow from the top
margin. Once the cursor passes the usable height (page height
minus the bottom margin and the footer reserve) a page break becomes pending and
is taken before the next flowing instance is placed, so a page is never added
without content to put on it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from .components import RenderContext, apply_fallback, render_component
from .geometry import Point
from .resolver import UNRESOLVED, evaluate_conditions, resolve
from .template_model import TemplateSection

logger = logging.getLogger(__name__)

FIRST_PAGE = 1
FOOTER_RULE_OFFSET_MM = 20.0
FOOTER_TEXT_OFFSET_MM = 10.0
FOOTER_TEXT_COLOR = (100, 100, 100)
FOOTER_RULE_COLOR = (200, 200, 200)


class LayoutState(Enum):
    PLACING = "placing"
    PAGE_BREAK_PENDING = "page_break_pending"


@dataclass
class Cursor:
    """Mutable flow position for repeatable instances."""

    page: int
    y: float
    state: LayoutState = LayoutState.PLACING


@dataclass(frozen=True)
class SectionInstance:
    section: TemplateSection
    scope: object
    repeat_index: int | None = None

    @property
    def anchored(self) -> bool:
        return self.repeat_index is None


def expand_section(section: TemplateSection, root: object) -> Iterator[SectionInstance]:
    """Yield the instances ``section`` contributes for ``root``.

    Non-repeatable sections check their conditions against the root record and
    render against the bound mapping when there is one. Repeatable sections
    check conditions per element, falling back to the root record for fields
    the element lacks; a binding that is not a sequence yields nothing.
    """
    if not section.is_repeatable:
        if section.conditions and not evaluate_conditions(section.conditions, root):
            logger.debug("Section %s suppressed by its conditions", section.id)
            return
        bound = resolve(root, section.data_binding) if section.data_binding else UNRESOLVED
        scope = bound if isinstance(bound, Mapping) else root
        yield SectionInstance(section, scope)
        return

    items = resolve(root, section.data_binding)
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        logger.debug("Repeatable section %s has no sequence at %r", section.id, section.data_binding)
        return
    for index, item in enumerate(items):
        if section.conditions and not evaluate_conditions(section.conditions, item, fallback=root):
            continue
        yield SectionInstance(section, item, index)


class PageFlow:
    """Places section instances on ``ctx.pdf``, adding pages as needed.

    The document must already have its first page. Footers are drawn by
    :meth:`finish` for the last page and by each page break for the others.
    """

    def __init__(self, ctx: RenderContext) -> None:
        self._ctx = ctx
        margins = ctx.definition.config.margins
        self._top = margins.top
        self._limit = ctx.usable_bottom
        self.cursor = Cursor(page=ctx.pdf.page, y=margins.top)

    def place_sections(self, sections: Sequence[TemplateSection], root: object) -> None:
        for section in sections:
            self.place_section(section, root)

    def place_section(self, section: TemplateSection, root: object) -> None:
        first = True
        for instance in expand_section(section, root):
            if instance.anchored:
                self._paint(instance, section.position)
                continue
            if first:
                first = False
                if self.cursor.state is LayoutState.PLACING and self.cursor.page == FIRST_PAGE:
                    self.cursor.y = max(self.cursor.y, section.position.y)
                    self._check_overflow()
            if self.cursor.state is LayoutState.PAGE_BREAK_PENDING:
                self._break_page()
            self._paint(instance, Point(section.position.x, self.cursor.y))
            self._advance(section)

    def finish(self) -> None:
        draw_footer(self._ctx)

    def _paint(self, instance: SectionInstance, base: Point) -> None:
        ctx = self._ctx
        for component in instance.section.components:
            origin = base.translate(component.position)
            issue = render_component(ctx, component, origin, instance.scope, instance.repeat_index)
            if issue is not None:
                apply_fallback(ctx, component, origin, issue)

    def _advance(self, section: TemplateSection) -> None:
        self.cursor.y += section.dimensions.height + self._ctx.settings.layout.repeat_gap_mm
        self._check_overflow()

    def _check_overflow(self) -> None:
        if self.cursor.y > self._limit:
            self.cursor.state = LayoutState.PAGE_BREAK_PENDING

    def _break_page(self) -> None:
        draw_footer(self._ctx)
        self._ctx.pdf.add_page()
        self.cursor.page = self._ctx.pdf.page
        self.cursor.y = self._top
        self.cursor.state = LayoutState.PLACING
        logger.debug("Started page %d", self.cursor.page)


def draw_footer(ctx: RenderContext) -> None:
    footer = ctx.settings.footer
    if not footer.enabled:
        return
    pdf = ctx.pdf
    margins = ctx.definition.config.margins
    right = pdf.w - margins.right
    rule_y = pdf.h - FOOTER_RULE_OFFSET_MM
    text_y = pdf.h - FOOTER_TEXT_OFFSET_MM

    pdf.set_draw_color(*FOOTER_RULE_COLOR)
    pdf.set_line_width(0.2)
    pdf.line(margins.left, rule_y, right, rule_y)

    pdf.set_font(ctx.default_family, style="", size=footer.font_size)
    pdf.set_text_color(*FOOTER_TEXT_COLOR)
    title = ctx.encode(ctx.definition.display_name)
    pdf.text(margins.left, text_y, title)
    label = ctx.encode(page_label(footer.page_label, pdf.page))
    pdf.text(right - pdf.get_string_width(label), text_y, label)
    pdf.set_text_color(0, 0, 0)
    ctx.record("footer", "footer", Point(margins.left, text_y), label)


def page_label(template: str, page: int) -> str:
    return template.replace("{page}", str(page))


def render_sections(ctx: RenderContext, root: object) -> int:
    """Lay out every section of ``ctx.definition`` for ``root``.

    Returns the number of pages in the document.
    """
    flow = PageFlow(ctx)
    flow.place_sections(ctx.definition.sorted_sections(), root)
    flow.finish()
    return ctx.pdf.page


__all__ = [
    "Cursor",
    "LayoutState",
    "PageFlow",
    "SectionInstance",
    "draw_footer",
    "expand_section",
    "page_label",
    "render_sections",
]
