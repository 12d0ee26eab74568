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

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Protocol

from ..errors import TemplateDefinitionError
from .template_model import TemplateDefinition, parse_template

logger = logging.getLogger(__name__)

_PACKAGE_ROOT = Path(__file__).resolve().parents[1]

STORAGE_ROOT = _PACKAGE_ROOT / "storage"
BUILTIN_TEMPLATES_DIR = STORAGE_ROOT / "templates"


class TemplateRepository(Protocol):
    def get(self, template_id: str) -> TemplateDefinition | None: ...

    def get_by_name(self, name: str) -> TemplateDefinition | None: ...

    def active_templates(self) -> list[TemplateDefinition]: ...


class InMemoryTemplateRepository:
    def __init__(self, templates: Iterable[TemplateDefinition] = ()) -> None:
        self._by_id: dict[str, TemplateDefinition] = {}
        for template in templates:
            self.add(template)

    def add(self, template: TemplateDefinition) -> None:
        if template.id in self._by_id:
            logger.info("Template %s replaced by a later definition", template.id)
        self._by_id[template.id] = template

    def get(self, template_id: str) -> TemplateDefinition | None:
        return self._by_id.get(template_id)

    def get_by_name(self, name: str) -> TemplateDefinition | None:
        for template in self._by_id.values():
            if name in (template.name, template.display_name):
                return template
        return None

    def active_templates(self) -> list[TemplateDefinition]:
        active = [template for template in self._by_id.values() if template.is_active]
        return sorted(active, key=lambda template: (template.template_type, template.display_name))

    def __iter__(self) -> Iterator[TemplateDefinition]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)


class DirectoryTemplateRepository(InMemoryTemplateRepository):
    """Templates stored as one JSON document per ``*.json`` file.

    Files are read once, when the repository is created. A file that is not a
    valid template raises :class:`TemplateDefinitionError` naming the file.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        super().__init__(load_template_file(path) for path in sorted(self.directory.glob("*.json")))
        logger.debug("Loaded %d templates from %s", len(self), self.directory)


def load_template_file(path: Path) -> TemplateDefinition:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TemplateDefinitionError(f"{path.name}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise TemplateDefinitionError(f"{path.name}: template must be a JSON object")
    try:
        return parse_template(payload)
    except ValueError as exc:
        raise TemplateDefinitionError(f"{path.name}: {exc}") from exc


def builtin_repository() -> DirectoryTemplateRepository:
    return DirectoryTemplateRepository(BUILTIN_TEMPLATES_DIR)


def find_template(repository: TemplateRepository, key: str) -> TemplateDefinition | None:
    return repository.get(key) or repository.get_by_name(key)


__all__ = [
    "BUILTIN_TEMPLATES_DIR",
    "DirectoryTemplateRepository",
    "InMemoryTemplateRepository",
    "STORAGE_ROOT",
    "TemplateRepository",
    "builtin_repository",
    "find_template",
    "load_template_file",
]
