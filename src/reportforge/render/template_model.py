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

"""Declarative template definitions.

Templates arrive from the repository as plain JSON-like dicts using the camelCase
keys of the stored schema (``dataBinding``, ``isRepeatable``, ...). They are parsed
once into frozen dataclasses; nested style bags and table descriptors are frozen
into read-only mappings and tuples so a render pass never observes mutation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from ..errors import TemplateDefinitionError
from .geometry import Margins, Orientation, PageSize, Point, Size

SectionKind = Literal["header", "content", "table", "image", "footer", "custom"]
ComponentType = Literal["text", "image", "table", "line", "rectangle", "chart"]
ConditionOperator = Literal["equals", "not_equals", "exists", "not_exists", "contains"]

PAGE_SIZES = ("A4", "A3", "Letter")
ORIENTATIONS = ("portrait", "landscape")
SECTION_KINDS: tuple[str, ...] = ("header", "content", "table", "image", "footer", "custom")
COMPONENT_TYPES: tuple[str, ...] = ("text", "image", "table", "line", "rectangle", "chart")

DEFAULT_FONT_FAMILY = "helvetica"
DEFAULT_BODY_SIZE = 10.0


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Condition:
    field: str
    operator: ConditionOperator
    value: object = None


@dataclass(frozen=True)
class LogoSpec:
    source: str
    width: float
    height: float


@dataclass(frozen=True)
class FontConfig:
    primary: str = DEFAULT_FONT_FAMILY
    secondary: str | None = None
    sizes: Mapping[str, float] = field(default_factory=_empty)

    def size(self, name: str, default: float = DEFAULT_BODY_SIZE) -> float:
        value = self.sizes.get(name)
        if value is None:
            return default
        return float(value)


@dataclass(frozen=True)
class TemplateConfig:
    page_size: PageSize = "A4"
    orientation: Orientation = "portrait"
    margins: Margins = Margins()
    fonts: FontConfig = FontConfig()
    colors: Mapping[str, str] = field(default_factory=_empty)
    logo: LogoSpec | None = None


@dataclass(frozen=True)
class FontStyle:
    family: str = DEFAULT_FONT_FAMILY
    size: float = DEFAULT_BODY_SIZE
    weight: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class BorderStyle:
    width: float
    color: str
    style: str = "solid"


@dataclass(frozen=True)
class TemplateStyles:
    fonts: Mapping[str, FontStyle] = field(default_factory=_empty)
    colors: Mapping[str, str] = field(default_factory=_empty)
    spacing: Mapping[str, float] = field(default_factory=_empty)
    borders: Mapping[str, BorderStyle] = field(default_factory=_empty)


@dataclass(frozen=True)
class TemplateComponent:
    id: str
    type: ComponentType
    content: object = ""
    position: Point = Point()
    dimensions: Size | None = None
    style: Mapping[str, object] = field(default_factory=_empty)
    data_binding: str | None = None
    conditions: tuple[Condition, ...] = ()


@dataclass(frozen=True)
class TemplateSection:
    id: str
    name: str
    kind: SectionKind
    position: Point
    dimensions: Size
    components: tuple[TemplateComponent, ...] = ()
    data_binding: str = ""
    is_repeatable: bool = False
    conditions: tuple[Condition, ...] = ()
    style: Mapping[str, object] = field(default_factory=_empty)


@dataclass(frozen=True)
class TemplateDefinition:
    id: str
    display_name: str
    config: TemplateConfig
    sections: tuple[TemplateSection, ...]
    styles: TemplateStyles = field(default_factory=TemplateStyles)
    name: str = ""
    description: str | None = None
    template_type: str = ""
    version: str = "1.0.0"
    is_active: bool = True

    def sorted_sections(self) -> list[TemplateSection]:
        return sorted(self.sections, key=lambda section: section.position.y)

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "TemplateDefinition":
        return parse_template(payload)


@dataclass(frozen=True)
class TableColumn:
    field: str
    header: str
    width: float | None = None


@dataclass(frozen=True)
class TableSpec:
    columns: tuple[TableColumn, ...]
    row_height: float
    header_fill: object = None
    header_weight: str = "bold"

    @classmethod
    def from_content(cls, content: object, *, default_row_height: float) -> "TableSpec":
        """Read a table descriptor out of a component's content.

        Raises ``ValueError`` for malformed descriptors; callers treat that as a
        component failure rather than a template error.
        """
        if not isinstance(content, Mapping):
            raise ValueError("table content must be a mapping with columns")
        raw_columns = content.get("columns")
        if not isinstance(raw_columns, Sequence) or isinstance(raw_columns, str):
            raise ValueError("table content requires a columns list")
        if not raw_columns:
            raise ValueError("table content requires at least one column")
        columns: list[TableColumn] = []
        for index, raw in enumerate(raw_columns):
            if not isinstance(raw, Mapping):
                raise ValueError(f"table column {index} must be a mapping")
            column_field = raw.get("field")
            if column_field is not None and not isinstance(column_field, str):
                raise ValueError(f"table column {index} field must be a string")
            column_field = (column_field or "").strip()
            header = raw.get("header", column_field)
            width = _parse_optional_float(raw.get("width"), field=f"columns[{index}].width")
            columns.append(TableColumn(field=column_field, header=str(header), width=width))
        row_height = _parse_optional_float(
            content.get("rowHeight", content.get("cellHeight")), field="rowHeight"
        )
        header_style = content.get("headerStyle")
        header_fill: object = None
        header_weight = "bold"
        if isinstance(header_style, Mapping):
            header_fill = header_style.get("backgroundColor")
            header_weight = str(header_style.get("fontWeight") or "bold")
        return cls(
            columns=tuple(columns),
            row_height=row_height if row_height and row_height > 0 else default_row_height,
            header_fill=header_fill,
            header_weight=header_weight,
        )


def parse_template(payload: Mapping[str, object]) -> TemplateDefinition:
    if not isinstance(payload, Mapping):
        raise TemplateDefinitionError("template payload must be a mapping")
    template_id = _parse_required_str(payload.get("id"), field="id")
    name = _parse_optional_str(payload.get("name")) or template_id
    display_name = _parse_optional_str(payload.get("displayName")) or name
    config = _parse_config(_get_dict(payload, "config"))
    styles = _parse_styles(_get_dict(payload, "styles"))
    raw_sections = payload.get("sections") or []
    if not isinstance(raw_sections, Sequence) or isinstance(raw_sections, str):
        raise TemplateDefinitionError("sections must be a list")
    sections = tuple(
        _parse_section(raw, field=f"sections[{index}]") for index, raw in enumerate(raw_sections)
    )
    return TemplateDefinition(
        id=template_id,
        name=name,
        display_name=display_name,
        description=_parse_optional_str(payload.get("description")),
        template_type=_parse_optional_str(payload.get("templateType")) or "",
        version=_parse_optional_str(payload.get("version")) or "1.0.0",
        is_active=_parse_bool(payload.get("isActive"), field="isActive", default=True),
        config=config,
        sections=sections,
        styles=styles,
    )


def _parse_config(cfg: Mapping[str, object]) -> TemplateConfig:
    page_size = _parse_choice(cfg.get("pageSize"), PAGE_SIZES, field="config.pageSize", default="A4")
    orientation = _parse_choice(
        cfg.get("orientation"), ORIENTATIONS, field="config.orientation", default="portrait"
    )
    margins_cfg = _get_dict(cfg, "margins")
    margins = Margins(
        top=_parse_float(margins_cfg.get("top"), field="config.margins.top", default=15.0),
        right=_parse_float(margins_cfg.get("right"), field="config.margins.right", default=15.0),
        bottom=_parse_float(margins_cfg.get("bottom"), field="config.margins.bottom", default=15.0),
        left=_parse_float(margins_cfg.get("left"), field="config.margins.left", default=15.0),
    )
    fonts_cfg = _get_dict(cfg, "fonts")
    sizes = {
        str(key): _parse_float(value, field=f"config.fonts.sizes.{key}", default=DEFAULT_BODY_SIZE)
        for key, value in _get_dict(fonts_cfg, "sizes").items()
    }
    fonts = FontConfig(
        primary=_parse_optional_str(fonts_cfg.get("primary")) or DEFAULT_FONT_FAMILY,
        secondary=_parse_optional_str(fonts_cfg.get("secondary")),
        sizes=MappingProxyType(sizes),
    )
    logo_cfg = cfg.get("logo")
    logo = None
    if isinstance(logo_cfg, Mapping):
        logo = LogoSpec(
            source=_parse_optional_str(logo_cfg.get("url")) or "logo",
            width=_parse_float(logo_cfg.get("width"), field="config.logo.width", default=30.0),
            height=_parse_float(logo_cfg.get("height"), field="config.logo.height", default=30.0),
        )
    return TemplateConfig(
        page_size=page_size,
        orientation=orientation,
        margins=margins,
        fonts=fonts,
        colors=_str_mapping(_get_dict(cfg, "colors")),
        logo=logo,
    )


def _parse_styles(cfg: Mapping[str, object]) -> TemplateStyles:
    fonts: dict[str, FontStyle] = {}
    for key, raw in _get_dict(cfg, "fonts").items():
        if not isinstance(raw, Mapping):
            raise TemplateDefinitionError(f"styles.fonts.{key} must be a mapping")
        fonts[str(key)] = FontStyle(
            family=_parse_optional_str(raw.get("family")) or DEFAULT_FONT_FAMILY,
            size=_parse_float(raw.get("size"), field=f"styles.fonts.{key}.size", default=10.0),
            weight=_parse_optional_str(raw.get("weight")),
            color=_parse_optional_str(raw.get("color")),
        )
    borders: dict[str, BorderStyle] = {}
    for key, raw in _get_dict(cfg, "borders").items():
        if not isinstance(raw, Mapping):
            raise TemplateDefinitionError(f"styles.borders.{key} must be a mapping")
        borders[str(key)] = BorderStyle(
            width=_parse_float(raw.get("width"), field=f"styles.borders.{key}.width", default=1.0),
            color=_parse_optional_str(raw.get("color")) or "#000000",
            style=_parse_optional_str(raw.get("style")) or "solid",
        )
    spacing = {
        str(key): _parse_float(value, field=f"styles.spacing.{key}", default=0.0)
        for key, value in _get_dict(cfg, "spacing").items()
    }
    return TemplateStyles(
        fonts=MappingProxyType(fonts),
        colors=_str_mapping(_get_dict(cfg, "colors")),
        spacing=MappingProxyType(spacing),
        borders=MappingProxyType(borders),
    )


def _parse_section(raw: object, *, field: str) -> TemplateSection:
    if not isinstance(raw, Mapping):
        raise TemplateDefinitionError(f"{field} must be a mapping")
    section_id = _parse_required_str(raw.get("id"), field=f"{field}.id")
    kind = _parse_choice(raw.get("type"), SECTION_KINDS, field=f"{field}.type", default="content")
    raw_components = raw.get("components") or []
    if not isinstance(raw_components, Sequence) or isinstance(raw_components, str):
        raise TemplateDefinitionError(f"{field}.components must be a list")
    components = tuple(
        _parse_component(item, field=f"{field}.components[{index}]")
        for index, item in enumerate(raw_components)
    )
    dimensions = _parse_size(raw.get("dimensions"), field=f"{field}.dimensions")
    return TemplateSection(
        id=section_id,
        name=_parse_optional_str(raw.get("name")) or section_id,
        kind=kind,
        position=_parse_point(raw.get("position"), field=f"{field}.position"),
        dimensions=dimensions or Size(0.0, 0.0),
        components=components,
        data_binding=_parse_optional_str(raw.get("dataBinding")) or "",
        is_repeatable=_parse_bool(raw.get("isRepeatable"), field=f"{field}.isRepeatable", default=False),
        conditions=_parse_conditions(raw.get("conditions"), field=f"{field}.conditions"),
        style=_freeze_mapping(_get_dict(raw, "style")),
    )


def _parse_component(raw: object, *, field: str) -> TemplateComponent:
    if not isinstance(raw, Mapping):
        raise TemplateDefinitionError(f"{field} must be a mapping")
    component_type = _parse_choice(raw.get("type"), COMPONENT_TYPES, field=f"{field}.type", default=None)
    content = raw.get("content", "")
    if content is None:
        content = ""
    return TemplateComponent(
        id=_parse_optional_str(raw.get("id")) or field,
        type=component_type,
        content=_freeze(content),
        position=_parse_point(raw.get("position"), field=f"{field}.position"),
        dimensions=_parse_size(raw.get("dimensions"), field=f"{field}.dimensions"),
        style=_freeze_mapping(_get_dict(raw, "style")),
        data_binding=_parse_optional_str(raw.get("dataBinding")),
        conditions=_parse_conditions(raw.get("conditions"), field=f"{field}.conditions"),
    )


def _parse_conditions(value: object, *, field: str) -> tuple[Condition, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise TemplateDefinitionError(f"{field} must be a list")
    conditions: list[Condition] = []
    for index, raw in enumerate(value):
        if not isinstance(raw, Mapping):
            raise TemplateDefinitionError(f"{field}[{index}] must be a mapping")
        conditions.append(
            Condition(
                field=_parse_required_str(raw.get("field"), field=f"{field}[{index}].field"),
                operator=_parse_required_str(raw.get("operator"), field=f"{field}[{index}].operator"),
                value=_freeze(raw.get("value")),
            )
        )
    return tuple(conditions)


def _parse_point(value: object, *, field: str) -> Point:
    if value is None:
        return Point()
    if not isinstance(value, Mapping):
        raise TemplateDefinitionError(f"{field} must be a mapping with x and y")
    return Point(
        x=_parse_float(value.get("x"), field=f"{field}.x", default=0.0),
        y=_parse_float(value.get("y"), field=f"{field}.y", default=0.0),
    )


def _parse_size(value: object, *, field: str) -> Size | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise TemplateDefinitionError(f"{field} must be a mapping with width and height")
    return Size(
        width=_parse_float(value.get("width"), field=f"{field}.width", default=0.0),
        height=_parse_float(value.get("height"), field=f"{field}.height", default=0.0),
    )


def _freeze(value: object) -> object:
    if isinstance(value, Mapping):
        return _freeze_mapping(value)
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _freeze_mapping(value: Mapping[str, object]) -> Mapping[str, object]:
    return MappingProxyType({str(key): _freeze(item) for key, item in value.items()})


def _str_mapping(value: Mapping[str, object]) -> Mapping[str, str]:
    return MappingProxyType({str(key): str(item) for key, item in value.items()})


def _get_dict(data: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _parse_required_str(value: object, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TemplateDefinitionError(f"{field} must be a non-empty string")
    return value.strip()


def _parse_optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_choice(value: object, choices: tuple[str, ...], *, field: str, default: str | None) -> str:
    if value is None or value == "":
        if default is None:
            raise TemplateDefinitionError(f"{field} is required")
        return default
    if not isinstance(value, str):
        raise TemplateDefinitionError(f"{field} must be one of {', '.join(choices)}")
    for choice in choices:
        if value.strip().lower() == choice.lower():
            return choice
    raise TemplateDefinitionError(f"{field} must be one of {', '.join(choices)}")


def _parse_float(value: object, *, field: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise TemplateDefinitionError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise TemplateDefinitionError(f"{field} must be a number") from exc
    raise TemplateDefinitionError(f"{field} must be a number")


def _parse_optional_float(value: object, *, field: str) -> float | None:
    if value is None:
        return None
    return _parse_float(value, field=field, default=0.0)


def _parse_bool(value: object, *, field: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise TemplateDefinitionError(f"{field} must be a boolean")


__all__ = [
    "BorderStyle",
    "COMPONENT_TYPES",
    "ComponentType",
    "Condition",
    "ConditionOperator",
    "FontConfig",
    "FontStyle",
    "LogoSpec",
    "ORIENTATIONS",
    "PAGE_SIZES",
    "SECTION_KINDS",
    "SectionKind",
    "TableColumn",
    "TableSpec",
    "TemplateComponent",
    "TemplateConfig",
    "TemplateDefinition",
    "TemplateSection",
    "TemplateStyles",
    "parse_template",
]
