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

import os
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from platformdirs import user_config_dir

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PACKAGE_ROOT / "config/config.toml"
CONFIG_ENV = "REPORTFORGE_CONFIG"
XDG_CONFIG_ENV = "XDG_CONFIG_HOME"

DEFAULT_REPEAT_GAP_MM = 10.0
DEFAULT_FOOTER_RESERVE_MM = 30.0
DEFAULT_TABLE_MAX_ROWS = 20
DEFAULT_TABLE_ROW_HEIGHT_MM = 8.0
DEFAULT_ASSET_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_IMAGE_PX = 400
DEFAULT_PAGE_LABEL = "Page {page}"


@dataclass(frozen=True)
class LayoutSettings:
    repeat_gap_mm: float = DEFAULT_REPEAT_GAP_MM
    footer_reserve_mm: float = DEFAULT_FOOTER_RESERVE_MM
    table_max_rows: int = DEFAULT_TABLE_MAX_ROWS
    table_row_height_mm: float = DEFAULT_TABLE_ROW_HEIGHT_MM


@dataclass(frozen=True)
class FooterSettings:
    enabled: bool = True
    page_label: str = DEFAULT_PAGE_LABEL
    font_size: float = 9.0


@dataclass(frozen=True)
class AssetSettings:
    timeout_seconds: float = DEFAULT_ASSET_TIMEOUT_SECONDS
    max_image_px: int = DEFAULT_MAX_IMAGE_PX
    logo_path: Path | None = None
    allow_remote: bool = True


@dataclass(frozen=True)
class EngineConfig:
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    footer: FooterSettings = field(default_factory=FooterSettings)
    assets: AssetSettings = field(default_factory=AssetSettings)
    templates_dir: Path | None = None
    font_files: Mapping[str, Path] = field(default_factory=lambda: MappingProxyType({}))


def user_config_path() -> Path:
    xdg_override = os.environ.get(XDG_CONFIG_ENV)
    if xdg_override:
        return Path(xdg_override) / "reportforge" / "config.toml"
    if sys.platform == "darwin":
        return Path.home() / ".config" / "reportforge" / "config.toml"
    return Path(user_config_dir("reportforge", appauthor=False)) / "config.toml"


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(CONFIG_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    user_path = user_config_path()
    if user_path.is_file():
        return user_path
    return DEFAULT_CONFIG_PATH


def load_engine_config(path: str | Path | None = None) -> EngineConfig:
    config_path = resolve_config_path(path)
    data = _load_toml(config_path)
    base_dir = config_path.parent
    return parse_engine_config(data, base_dir=base_dir)


def parse_engine_config(data: Mapping[str, object], *, base_dir: Path | None = None) -> EngineConfig:
    layout_cfg = _get_dict(data, "layout")
    footer_cfg = _get_dict(data, "footer")
    assets_cfg = _get_dict(data, "assets")
    templates_cfg = _get_dict(data, "templates")
    fonts_cfg = _get_dict(data, "fonts")

    layout = LayoutSettings(
        repeat_gap_mm=_parse_non_negative_float(
            layout_cfg.get("repeat_gap_mm"), field="layout.repeat_gap_mm", default=DEFAULT_REPEAT_GAP_MM
        ),
        footer_reserve_mm=_parse_non_negative_float(
            layout_cfg.get("footer_reserve_mm"),
            field="layout.footer_reserve_mm",
            default=DEFAULT_FOOTER_RESERVE_MM,
        ),
        table_max_rows=_parse_positive_int(
            layout_cfg.get("table_max_rows"), field="layout.table_max_rows", default=DEFAULT_TABLE_MAX_ROWS
        ),
        table_row_height_mm=_parse_positive_float(
            layout_cfg.get("table_row_height_mm"),
            field="layout.table_row_height_mm",
            default=DEFAULT_TABLE_ROW_HEIGHT_MM,
        ),
    )
    page_label = _parse_optional_str(footer_cfg.get("page_label"), field="footer.page_label")
    footer = FooterSettings(
        enabled=_parse_bool(footer_cfg.get("enabled"), field="footer.enabled", default=True),
        page_label=page_label or DEFAULT_PAGE_LABEL,
        font_size=_parse_positive_float(footer_cfg.get("font_size"), field="footer.font_size", default=9.0),
    )
    assets = AssetSettings(
        timeout_seconds=_parse_positive_float(
            assets_cfg.get("timeout_seconds"),
            field="assets.timeout_seconds",
            default=DEFAULT_ASSET_TIMEOUT_SECONDS,
        ),
        max_image_px=_parse_positive_int(
            assets_cfg.get("max_image_px"), field="assets.max_image_px", default=DEFAULT_MAX_IMAGE_PX
        ),
        logo_path=_parse_optional_path(assets_cfg.get("logo_path"), field="assets.logo_path", base_dir=base_dir),
        allow_remote=_parse_bool(assets_cfg.get("allow_remote"), field="assets.allow_remote", default=True),
    )
    font_files: dict[str, Path] = {}
    for family, value in fonts_cfg.items():
        font_path = _parse_optional_path(value, field=f"fonts.{family}", base_dir=base_dir)
        if font_path is not None:
            font_files[str(family).strip().lower()] = font_path
    return EngineConfig(
        layout=layout,
        footer=footer,
        assets=assets,
        templates_dir=_parse_optional_path(
            templates_cfg.get("directory"), field="templates.directory", base_dir=base_dir
        ),
        font_files=MappingProxyType(font_files),
    )


def _load_toml(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_dict(data: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _parse_optional_str(value: object, *, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    normalized = value.strip()
    return normalized or None


def _parse_optional_path(value: object, *, field: str, base_dir: Path | None) -> Path | None:
    text = _parse_optional_str(value, field=field)
    if text is None:
        return None
    path = Path(text).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def _parse_bool(value: object, *, field: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{field} must be a boolean")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        raise ValueError(f"{field} must be a boolean")
    raise ValueError(f"{field} must be a boolean")


def _parse_float_strict(value: object, *, field: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return float(text)
        except ValueError as exc:
            raise ValueError(f"{field} must be a number") from exc
    raise ValueError(f"{field} must be a number")


def _parse_non_negative_float(value: object, *, field: str, default: float) -> float:
    if value is None:
        return default
    parsed = _parse_float_strict(value, field=field)
    if parsed < 0:
        raise ValueError(f"{field} must not be negative")
    return parsed


def _parse_positive_float(value: object, *, field: str, default: float) -> float:
    if value is None:
        return default
    parsed = _parse_float_strict(value, field=field)
    if parsed <= 0:
        raise ValueError(f"{field} must be positive")
    return parsed


def _parse_positive_int(value: object, *, field: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field} must be an integer")
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise ValueError(f"{field} must be an integer") from exc
    if not isinstance(value, int):
        raise ValueError(f"{field} must be an integer")
    if value <= 0:
        raise ValueError(f"{field} must be a positive integer")
    return value
