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
import tempfile
import unittest
from pathlib import Path

from reportforge.errors import TemplateDefinitionError
from reportforge.render.repository import (
    DirectoryTemplateRepository,
    InMemoryTemplateRepository,
    builtin_repository,
    find_template,
    load_template_file,
)
from tests.test_support import make_definition, section, template_payload, text_component


def _definition(template_id: str, name: str, **extra):
    return make_definition(
        [section("s", [text_component("t", "x")])],
        template_id=template_id,
        name=name,
        **extra,
    )


class TestInMemoryRepository(unittest.TestCase):
    def test_lookup_by_id_and_name(self) -> None:
        repository = InMemoryTemplateRepository([_definition("a", "alpha")])
        self.assertEqual(repository.get("a").name, "alpha")
        self.assertIsNone(repository.get("alpha"))
        self.assertEqual(repository.get_by_name("alpha").id, "a")
        self.assertEqual(repository.get_by_name("Test Report").id, "a")
        self.assertEqual(find_template(repository, "alpha").id, "a")
        self.assertIsNone(find_template(repository, "missing"))

    def test_later_definition_replaces_earlier(self) -> None:
        with self.assertLogs("reportforge.render.repository", level="INFO"):
            repository = InMemoryTemplateRepository(
                [_definition("a", "first"), _definition("a", "second")]
            )
        self.assertEqual(len(repository), 1)
        self.assertEqual(repository.get("a").name, "second")

    def test_active_templates_sorted_and_filtered(self) -> None:
        repository = InMemoryTemplateRepository(
            [
                _definition("c", "gamma", templateType="b_type", displayName="Zeta"),
                _definition("b", "beta", templateType="a_type", displayName="Omega"),
                _definition("a", "alpha", templateType="b_type", displayName="Alpha"),
                _definition("d", "delta", isActive=False),
            ]
        )
        self.assertEqual([t.id for t in repository.active_templates()], ["b", "a", "c"])
        self.assertEqual(len(repository), 4)


class TestDirectoryRepository(unittest.TestCase):
    def test_loads_json_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            for template_id in ("one", "two"):
                payload = template_payload(
                    [section("s", [text_component("t", "x")])],
                    template_id=template_id,
                    name=f"{template_id}_name",
                )
                (root / f"{template_id}.json").write_text(json.dumps(payload), encoding="utf-8")
            (root / "notes.txt").write_text("ignored", encoding="utf-8")
            repository = DirectoryTemplateRepository(root)
        self.assertEqual(sorted(t.id for t in repository), ["one", "two"])
        self.assertEqual(repository.get_by_name("two_name").id, "two")

    def test_invalid_files_name_the_file(self) -> None:
        cases = (
            ("broken.json", "{not json"),
            ("list.json", "[1, 2]"),
            ("noid.json", json.dumps({"name": "x", "sections": []})),
        )
        for filename, text in cases:
            with self.subTest(filename=filename):
                with tempfile.TemporaryDirectory() as tmpdir:
                    path = Path(tmpdir) / filename
                    path.write_text(text, encoding="utf-8")
                    with self.assertRaises(TemplateDefinitionError) as ctx:
                        load_template_file(path)
                self.assertIn(filename, str(ctx.exception))
                self.assertIsInstance(ctx.exception, ValueError)

    def test_missing_file(self) -> None:
        with self.assertRaises(TemplateDefinitionError):
            load_template_file(Path("/nonexistent/template.json"))


class TestBuiltinRepository(unittest.TestCase):
    def test_isg_report_is_available(self) -> None:
        repository = builtin_repository()
        definition = repository.get("isg-inspection-report")
        self.assertIsNotNone(definition)
        self.assertIs(repository.get_by_name("isg_inspection_report"), definition)
        self.assertEqual(definition.template_type, "isg_report")
        self.assertIn(definition, repository.active_templates())
        repeatable = [s.id for s in definition.sorted_sections() if s.is_repeatable]
        self.assertEqual(repeatable, ["findings", "general_evaluation"])


if __name__ == "__main__":
    unittest.main()
