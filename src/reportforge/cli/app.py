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

from . import command_registry
from .common import _get_version
from .ui import configure_logging, console, set_no_color

app = typer.Typer(add_completion=False, help="Render JSON report templates to PDF.")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"reportforge {_get_version()}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        help="Use this TOML config file.",
        rich_help_panel="Global",
    ),
    templates: Path | None = typer.Option(
        None,
        "--templates",
        help="Directory of additional JSON templates.",
        rich_help_panel="Global",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Log more detail (repeat for debug output).",
        rich_help_panel="Global",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show tracebacks instead of short error messages.",
        rich_help_panel="Debug",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Hide non-error output.",
        rich_help_panel="Global",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output.",
        rich_help_panel="Accessibility",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
        rich_help_panel="Info",
    ),
) -> None:
    _ = version
    set_no_color(no_color)
    configure_logging(verbose, quiet=quiet)
    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "config": config,
            "templates": templates,
            "debug": debug,
            "quiet": quiet,
        }
    )
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


command_registry.register(app)


def main() -> None:
    app()
