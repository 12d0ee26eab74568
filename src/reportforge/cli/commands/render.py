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

import re
from pathlib import Path

import typer

from ...render.assets import FileAssetFetcher
from ...render.service import TemplateRenderer
from ..common import STDIN_MARKER, _ctx_value, _load_config, _load_data, _load_repository, _run_cli
from ..ui import console, warn

_RENDER_HELP = (
    "Render a template with a JSON data record.\n\n"
    "TEMPLATE is a template id or name. Image paths in the data that are not URLs\n"
    "are read relative to the data file.\n\n"
    "Examples:\n"
    "  reportforge render isg_inspection_report report.json -o report.pdf\n"
    "  cat report.json | reportforge render isg-inspection-report -\n"
)

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def register(app: typer.Typer) -> None:
    app.command(help=_RENDER_HELP)(render)


def render(
    ctx: typer.Context,
    template: str = typer.Argument(..., help="Template id or name."),
    data: str = typer.Argument(..., help="JSON data file, or - for stdin."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output PDF path (defaults to <template>.pdf).",
        rich_help_panel="Outputs",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        help="Use this TOML config file.",
        rich_help_panel="Inputs",
    ),
    templates: Path | None = typer.Option(
        None,
        "--templates",
        help="Directory of additional JSON templates.",
        rich_help_panel="Inputs",
    ),
) -> None:
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        engine_config = _load_config(ctx, config)
        repository = _load_repository(engine_config, templates or _ctx_value(ctx, "templates"))
        record = _load_data(data)
        asset_root = Path.cwd() if data == STDIN_MARKER else Path(data).expanduser().resolve().parent
        renderer = TemplateRenderer(
            repository,
            engine_config,
            asset_fetcher=FileAssetFetcher(asset_root),
        )
        document = renderer.render_document(template, record)
        output_path = output or Path.cwd() / default_output_name(template)
        output_path.write_bytes(document.content)
        for issue in document.issues:
            warn(
                f"{issue.component_type} {issue.component_id} on page {issue.page}: {issue.message}",
                quiet=quiet_value,
            )
        if not quiet_value:
            console.print(f"{output_path} [muted]({document.page_count} page(s))[/muted]")

    _run_cli(_run, debug=debug_value)


def default_output_name(template: str) -> str:
    stem = _UNSAFE_FILENAME.sub("_", template).strip("._") or "report"
    return f"{stem}.pdf"
