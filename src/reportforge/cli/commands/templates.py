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

from pathlib import Path

import typer
from rich.table import Table

from ..common import _ctx_value, _load_config, _load_repository, _run_cli
from ..ui import console


def register(app: typer.Typer) -> None:
    app.command(help="List the active templates.")(templates)


def templates(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        help="Use this TOML config file.",
        rich_help_panel="Inputs",
    ),
    directory: Path | None = typer.Option(
        None,
        "--templates",
        help="Directory of additional JSON templates.",
        rich_help_panel="Inputs",
    ),
) -> None:
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        engine_config = _load_config(ctx, config)
        repository = _load_repository(engine_config, directory or _ctx_value(ctx, "templates"))
        table = Table(title="Templates", header_style="title")
        table.add_column("Id", style="accent")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Display name")
        table.add_column("Version", style="muted")
        for definition in repository.active_templates():
            table.add_row(
                definition.id,
                definition.name,
                definition.template_type,
                definition.display_name,
                definition.version,
            )
        console.print(table)

    _run_cli(_run, debug=debug_value)
