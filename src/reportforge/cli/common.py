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

import importlib.metadata
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from rich.traceback import install as install_rich_traceback

from ..config import EngineConfig, load_engine_config
from ..errors import ReportForgeError
from ..render.repository import (
    DirectoryTemplateRepository,
    InMemoryTemplateRepository,
    builtin_repository,
)
from .ui import console_err

STDIN_MARKER = "-"


def _run_cli(func: Callable[[], Any], *, debug: bool) -> None:
    if debug:
        install_rich_traceback(show_locals=True)
    try:
        result = func()
    except (ReportForgeError, OSError, RuntimeError, ValueError, TypeError, LookupError) as exc:
        if debug:
            raise
        console_err.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2)
    if isinstance(result, int) and result != 0:
        raise typer.Exit(code=result)


def _ctx_value(ctx: typer.Context, key: str) -> Any:
    if ctx.obj is None:
        return None
    return ctx.obj.get(key)


def _get_version() -> str:
    try:
        return importlib.metadata.version("reportforge")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


def _load_config(ctx: typer.Context, config: str | None) -> EngineConfig:
    return load_engine_config(config or _ctx_value(ctx, "config"))


def _load_repository(
    config: EngineConfig,
    templates_dir: Path | None,
) -> InMemoryTemplateRepository:
    """Built-in templates, overlaid with any templates found in a directory."""
    directory = templates_dir or config.templates_dir
    templates = list(builtin_repository())
    if directory is not None:
        if not directory.is_dir():
            raise ValueError(f"templates directory not found: {directory}")
        templates.extend(DirectoryTemplateRepository(directory))
    return InMemoryTemplateRepository(templates)


def _load_data(source: str) -> object:
    if source == STDIN_MARKER:
        text = sys.stdin.read()
        label = "stdin"
    else:
        path = Path(source).expanduser()
        text = path.read_text(encoding="utf-8")
        label = str(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{label} is not valid JSON: {exc}") from exc


__all__ = [
    "STDIN_MARKER",
    "_ctx_value",
    "_get_version",
    "_load_config",
    "_load_data",
    "_load_repository",
    "_run_cli",
]
