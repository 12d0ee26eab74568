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

import unittest

from reportforge.render.resolver import (
    UNRESOLVED,
    evaluate_condition,
    evaluate_conditions,
    evaluate_token,
    has_tokens,
    is_resolved,
    resolve,
    resolve_style_value,
    stringify,
    substitute_tokens,
)
from reportforge.render.template_model import Condition

RECORD = {
    "title": "Blocked fire exit",
    "location": {"building": "A", "floor": 2},
    "images": ["obj/one.jpg", "obj/two.jpg"],
    "dangerLevel": "high",
    "legalBasis": None,
    "tags": ["fire", "exit"],
}


class TestResolve(unittest.TestCase):
    def test_paths(self) -> None:
        cases = (
            ("title", "Blocked fire exit"),
            ("location.floor", 2),
            ("images.1", "obj/two.jpg"),
            ("legalBasis", None),
        )
        for path, expected in cases:
            with self.subTest(path=path):
                self.assertEqual(resolve(RECORD, path), expected)

    def test_misses_are_unresolved(self) -> None:
        for path in ("missing", "location.room", "images.5", "title.length", "images.first"):
            with self.subTest(path=path):
                self.assertIs(resolve(RECORD, path), UNRESOLVED)
                self.assertFalse(is_resolved(resolve(RECORD, path)))

    def test_empty_path_returns_record(self) -> None:
        self.assertIs(resolve(RECORD, ""), RECORD)
        self.assertIs(resolve(RECORD, None), RECORD)

    def test_unresolved_is_falsy_singleton(self) -> None:
        self.assertFalse(UNRESOLVED)
        self.assertIs(type(UNRESOLVED)(), UNRESOLVED)


class TestStringify(unittest.TestCase):
    def test_values(self) -> None:
        cases = (
            (UNRESOLVED, ""),
            (None, ""),
            (True, "true"),
            (False, "false"),
            (3.0, "3"),
            (2.5, "2.5"),
            (7, "7"),
            (["a", 1, None], "a, 1, "),
            ("text", "text"),
        )
        for value, expected in cases:
            with self.subTest(value=value):
                self.assertEqual(stringify(value), expected)


class TestTokens(unittest.TestCase):
    def test_has_tokens(self) -> None:
        self.assertTrue(has_tokens("Konum: {{location.building}}"))
        self.assertFalse(has_tokens("Mevcut Durum:"))
        self.assertFalse(has_tokens("{single}"))

    def test_substitution_in_repeat(self) -> None:
        text = substitute_tokens("BULGU {{itemIndex}}: {{title}}", RECORD, repeat_index=0)
        self.assertEqual(text, "BULGU 1: Blocked fire exit")

    def test_missing_and_null_values_become_empty(self) -> None:
        self.assertEqual(substitute_tokens("[{{missing}}][{{legalBasis}}]", RECORD), "[][]")

    def test_ternary_token(self) -> None:
        text = substitute_tokens(
            '{{dangerLevel === "high" ? "YÜKSEK RİSK" : "DÜŞÜK RİSK"}}',
            RECORD,
        )
        self.assertEqual(text, "YÜKSEK RİSK")

    def test_unparseable_token_falls_back_to_path_lookup(self) -> None:
        scope = {"odd key": "value"}
        self.assertEqual(evaluate_token("odd key", scope), "value")
        self.assertEqual(substitute_tokens("{{ ?? }}", scope), "")

    def test_item_index_outside_repeat_reads_scope(self) -> None:
        self.assertEqual(evaluate_token("itemIndex", {"itemIndex": 9}), 9)
        self.assertIs(evaluate_token("itemIndex", {}), UNRESOLVED)


class TestStyleValues(unittest.TestCase):
    def test_whole_token_is_evaluated_raw(self) -> None:
        value = '{{dangerLevel === "high" ? "#dc2626" : "#16a34a"}}'
        self.assertEqual(resolve_style_value(value, RECORD), "#dc2626")
        self.assertEqual(resolve_style_value("{{location.floor}}", RECORD), 2)

    def test_unresolved_whole_token_is_none(self) -> None:
        self.assertIsNone(resolve_style_value("{{missing}}", RECORD))

    def test_palette_names(self) -> None:
        palette = {"primary": "#2563eb"}
        self.assertEqual(resolve_style_value("primary", RECORD, palette=palette), "#2563eb")
        self.assertEqual(resolve_style_value("#111111", RECORD, palette=palette), "#111111")
        scope = {"color": "primary"}
        self.assertEqual(resolve_style_value("{{color}}", scope, palette=palette), "#2563eb")


class TestConditions(unittest.TestCase):
    def test_operators(self) -> None:
        cases = (
            (Condition("dangerLevel", "equals", "high"), True),
            (Condition("location.floor", "equals", "2"), False),
            (Condition("location.floor", "equals", 2), True),
            (Condition("dangerLevel", "not_equals", "low"), True),
            (Condition("title", "exists"), True),
            (Condition("legalBasis", "exists"), False),
            (Condition("missing", "exists"), False),
            (Condition("legalBasis", "not_exists"), True),
            (Condition("title", "not_exists"), False),
            (Condition("tags", "contains", "fire"), True),
            (Condition("tags", "contains", "water"), False),
            (Condition("title", "contains", "fire"), True),
            (Condition("location.floor", "contains", 2), False),
        )
        for condition, expected in cases:
            with self.subTest(condition=condition):
                self.assertIs(evaluate_condition(condition, RECORD), expected)

    def test_empty_string_exists(self) -> None:
        self.assertTrue(evaluate_condition(Condition("note", "exists"), {"note": ""}))

    def test_unknown_operator_passes_with_warning(self) -> None:
        with self.assertLogs("reportforge.render.resolver", level="WARNING") as logs:
            self.assertTrue(evaluate_condition(Condition("title", "matches", "x"), RECORD))
        self.assertIn("matches", logs.output[0])

    def test_all_conditions_must_hold(self) -> None:
        conditions = (Condition("title", "exists"), Condition("dangerLevel", "equals", "low"))
        self.assertFalse(evaluate_conditions(conditions, RECORD))
        self.assertTrue(evaluate_conditions((), RECORD))

    def test_fallback_scope_for_unresolved_fields(self) -> None:
        item = {"status": "open"}
        root = {"showFindings": True, "status": "closed"}
        self.assertFalse(evaluate_condition(Condition("showFindings", "exists"), item))
        self.assertTrue(evaluate_condition(Condition("showFindings", "exists"), item, fallback=root))
        self.assertTrue(evaluate_condition(Condition("status", "equals", "open"), item, fallback=root))
        self.assertTrue(
            evaluate_conditions(
                (Condition("showFindings", "equals", True), Condition("status", "equals", "open")),
                item,
                fallback=root,
            )
        )


if __name__ == "__main__":
    unittest.main()
