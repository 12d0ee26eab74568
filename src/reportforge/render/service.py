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
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from fpdf import FPDF
from fpdf.errors import FPDFException

from ..config import EngineConfig
from ..errors import TemplateNotFound
from .assets import AssetFetcher, AssetResolver, load_logo
from .components import PaintedElement, RenderContext, RenderIssue
from .layout import render_sections
from .repository import TemplateRepository, find_template
from .template_model import DEFAULT_BODY_SIZE, DEFAULT_FONT_FAMILY, TemplateDefinition
from .text import page_format, page_orientation

logger = logging.getLogger(__name__)

PDF_CREATOR = "reportforge"


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    page_count: int
    issues: tuple[RenderIssue, ...] = ()
    trace: tuple[PaintedElement, ...] = field(default=(), repr=False)

    @property
    def ok(self) -> bool:
        return not self.issues


class TemplateRenderer:
    """Renders stored templates against data records into PDF bytes.

    The logo is loaded once, when the renderer is built. Each call builds its
    own ``FPDF`` document and asset resolver, so one renderer may serve
    concurrent callers.
    """

    def __init__(
        self,
        repository: TemplateRepository,
        config: EngineConfig | None = None,
        asset_fetcher: AssetFetcher | None = None,
        *,
        http_fetcher: AssetFetcher | None = None,
    ) -> None:
        self.repository = repository
        self.config = config or EngineConfig()
        self._asset_fetcher = asset_fetcher
        self._http_fetcher = http_fetcher
        self._logo = load_logo(self.config.assets)
        # Per-call resolvers reuse the loaded logo instead of reading the file again.
        self._asset_settings = replace(self.config.assets, logo_path=None)

    def render(self, template_id: str, data: object) -> bytes:
        return self.render_document(template_id, data).content

    def render_document(self, template_id: str, data: object) -> RenderedDocument:
        definition = find_template(self.repository, template_id)
        if definition is None:
            raise TemplateNotFound(template_id)
        return self.render_definition(definition, data)

    def render_definition(self, definition: TemplateDefinition, data: object) -> RenderedDocument:
        pdf = _new_document(definition)
        unicode_fonts = _register_fonts(pdf, self.config.font_files)
        default_family = _apply_default_font(pdf, definition)
        assets = AssetResolver(
            self._asset_settings,
            fetcher=self._asset_fetcher,
            http_fetcher=self._http_fetcher,
            logo=self._logo,
        )
        ctx = RenderContext(
            pdf=pdf,
            definition=definition,
            settings=self.config,
            assets=assets,
            default_family=default_family,
            unicode_fonts=unicode_fonts,
        )
        page_count = render_sections(ctx, data)
        content = bytes(pdf.output())
        logger.info(
            "Rendered %s: %d page(s), %d issue(s), %d bytes",
            definition.id,
            page_count,
            len(ctx.issues),
            len(content),
        )
        return RenderedDocument(
            content=content,
            page_count=page_count,
            issues=tuple(ctx.issues),
            trace=tuple(ctx.trace),
        )


def _new_document(definition: TemplateDefinition) -> FPDF:
    config = definition.config
    pdf = FPDF(orientation=page_orientation(config), unit="mm", format=page_format(config))
    margins = config.margins
    pdf.set_margins(margins.left, margins.top, margins.right)
    pdf.set_auto_page_break(False)
    pdf.set_title(definition.display_name)
    pdf.set_creator(PDF_CREATOR)
    pdf.add_page()
    return pdf


def _register_fonts(pdf: FPDF, font_files: Mapping[str, Path]) -> frozenset[str]:
    registered: set[str] = set()
    for family, path in font_files.items():
        try:
            pdf.add_font(family, style="", fname=str(path))
        except (OSError, FPDFException) as exc:
            logger.warning("Font %s could not be registered from %s: %s", family, path, exc)
            continue
        registered.add(family)
    return frozenset(registered)


def _apply_default_font(pdf: FPDF, definition: TemplateDefinition) -> str:
    fonts = definition.config.fonts
    family = fonts.primary.strip().lower() or DEFAULT_FONT_FAMILY
    size = fonts.size("body", DEFAULT_BODY_SIZE)
    try:
        pdf.set_font(family, size=size)
    except FPDFException:
        logger.warning("Font family %s is not available; using %s", family, DEFAULT_FONT_FAMILY)
        family = DEFAULT_FONT_FAMILY
        pdf.set_font(family, size=size)
    return family


__all__ = [
    "PDF_CREATOR",
    "RenderedDocument",
    "TemplateRenderer",
]
