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

import json
import re
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from reportforge.cli import app
from reportforge.cli.commands.render import default_output_name
from reportforge.config import CONFIG_ENV, DEFAULT_CONFIG_PATH
from tests.test_support import section, temp_env, template_payload, text_component

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")


def _strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


class TestCliTyper(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self._env = temp_env({CONFIG_ENV: str(DEFAULT_CONFIG_PATH)})
        self._env.__enter__()
        self.addCleanup(self._env.__exit__, None, None, None)

    def test_root_info_commands(self) -> None:
        cases = (
            {"args": ["--help"], "expected_exit_code": 0, "contains": ("render", "templates")},
            {"args": ["--version"], "expected_exit_code": 0, "contains": ("reportforge",)},
            {"args": [], "expected_exit_code": 0, "contains": ("render",)},
        )
        for case in cases:
            with self.subTest(args=case["args"]):
                result = self.runner.invoke(app, case["args"])
                self.assertEqual(result.exit_code, case["expected_exit_code"])
                output = _strip_ansi(result.output)
                for expected in case["contains"]:
                    self.assertIn(expected, output)

    def test_render_writes_pdf(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            data_path = Path(tmpdir) / "report.json"
            data_path.write_text(
                json.dumps({"companyName": "ACME", "findings": [{"title": "Loose cable"}]}),
                encoding="utf-8",
            )
            output = Path(tmpdir) / "out.pdf"
            result = self.runner.invoke(
                app,
                ["render", "isg_inspection_report", str(data_path), "--output", str(output)],
            )
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(output.read_bytes().startswith(b"%PDF"))

    def test_render_reports_missing_template(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            data_path = Path(tmpdir) / "report.json"
            data_path.write_text("{}", encoding="utf-8")
            result = self.runner.invoke(app, ["render", "missing", str(data_path)])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("template not found", _strip_ansi(result.output))

    def test_render_rejects_invalid_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            data_path = Path(tmpdir) / "report.json"
            data_path.write_text("{oops", encoding="utf-8")
            result = self.runner.invoke(app, ["render", "isg_inspection_report", str(data_path)])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("Error:", _strip_ansi(result.output))

    def test_render_reads_stdin_and_extra_templates(self) -> None:
        payload = template_payload(
            [section("s", [text_component("greeting", "Hello {{name}}")])],
            template_id="greeting",
            name="greeting_card",
        )
        with tempfile.TemporaryDirectory() as tmpdir:
            templates_dir = Path(tmpdir) / "templates"
            templates_dir.mkdir()
            (templates_dir / "greeting.json").write_text(json.dumps(payload), encoding="utf-8")
            output = Path(tmpdir) / "greeting.pdf"
            result = self.runner.invoke(
                app,
                ["--templates", str(templates_dir), "render", "greeting_card", "-", "-o", str(output)],
                input='{"name": "Ada"}',
            )
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(output.read_bytes().startswith(b"%PDF"))

    def test_missing_templates_directory(self) -> None:
        result = self.runner.invoke(app, ["templates", "--templates", "/nonexistent/templates"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("templates directory not found", _strip_ansi(result.output))

    def test_templates_lists_builtin(self) -> None:
        result = self.runner.invoke(app, ["templates"])
        self.assertEqual(result.exit_code, 0, result.output)
        output = _strip_ansi(result.output)
        self.assertIn("Templates", output)
        self.assertIn("isg", output)


class TestDefaultOutputName(unittest.TestCase):
    def test_sanitizes_template_key(self) -> None:
        cases = (
            ("isg_inspection_report", "isg_inspection_report.pdf"),
            ("İSG İnceleme Raporu", "SG_nceleme_Raporu.pdf"),
            ("../etc/passwd", "etc_passwd.pdf"),
            ("///", "report.pdf"),
        )
        for template, expected in cases:
            with self.subTest(template=template):
                self.assertEqual(default_output_name(template), expected)


if __name__ == "__main__":
    unittest.main()
