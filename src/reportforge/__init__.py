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

"""Render stored report templates against JSON data records into PDF documents."""

from __future__ import annotations

from .config import EngineConfig, load_engine_config
from .errors import AssetError, ReportForgeError, TemplateDefinitionError, TemplateNotFound
from .render.repository import (
    DirectoryTemplateRepository,
    InMemoryTemplateRepository,
    TemplateRepository,
    builtin_repository,
)
from .render.service import RenderedDocument, TemplateRenderer
from .render.template_model import TemplateDefinition, parse_template

__all__ = [
    "AssetError",
    "DirectoryTemplateRepository",
    "EngineConfig",
    "InMemoryTemplateRepository",
    "RenderedDocument",
    "ReportForgeError",
    "TemplateDefinition",
    "TemplateDefinitionError",
    "TemplateNotFound",
    "TemplateRenderer",
    "TemplateRepository",
    "builtin_repository",
    "load_engine_config",
    "parse_template",
]
