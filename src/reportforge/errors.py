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


class ReportForgeError(Exception):
    """Base class for errors raised by reportforge."""


class TemplateNotFound(ReportForgeError, LookupError):
    def __init__(self, template_id: str) -> None:
        super().__init__(f"template not found: {template_id}")
        self.template_id = template_id


class TemplateDefinitionError(ReportForgeError, ValueError):
    """A stored template payload could not be turned into a definition."""


class AssetError(ReportForgeError):
    """An image asset could not be fetched or normalized."""


__all__ = [
    "AssetError",
    "ReportForgeError",
    "TemplateDefinitionError",
    "TemplateNotFound",
]
