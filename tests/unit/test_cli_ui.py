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

import logging
import runpy
import sys
import unittest
from unittest import mock

from reportforge.cli import ui as ui_module
from reportforge.cli.ui import configure_logging, isatty, log_level, warn


class TestIsatty(unittest.TestCase):
    def test_stream_isatty_passthrough(self) -> None:
        for expected in (True, False):
            with self.subTest(expected=expected):
                stream = mock.MagicMock()
                stream.isatty.return_value = expected
                self.assertEqual(isatty(stream, fallback=sys.stdout), expected)

    def test_stream_isatty_errors_return_false(self) -> None:
        for side_effect in (OSError("not available"), ValueError("closed"), AttributeError("missing")):
            with self.subTest(side_effect=type(side_effect).__name__):
                stream = mock.MagicMock()
                stream.isatty.side_effect = side_effect
                self.assertFalse(isatty(stream, fallback=sys.stdout))

    def test_none_stream_uses_fallback(self) -> None:
        fallback = mock.MagicMock()
        fallback.isatty.return_value = True
        self.assertTrue(isatty(None, fallback=fallback))


class TestLogging(unittest.TestCase):
    def tearDown(self) -> None:
        logging.basicConfig(level=logging.WARNING, force=True)

    def test_log_level(self) -> None:
        cases = (
            (0, False, logging.WARNING),
            (1, False, logging.INFO),
            (2, False, logging.DEBUG),
            (5, False, logging.DEBUG),
            (2, True, logging.ERROR),
        )
        for verbose, quiet, expected in cases:
            with self.subTest(verbose=verbose, quiet=quiet):
                self.assertEqual(log_level(verbose, quiet=quiet), expected)

    def test_configure_logging_installs_rich_handler(self) -> None:
        configure_logging(1)
        root = logging.getLogger()
        self.assertEqual(root.level, logging.INFO)
        self.assertEqual(len(root.handlers), 1)
        self.assertEqual(type(root.handlers[0]).__name__, "RichHandler")

    def test_warn_respects_quiet(self) -> None:
        with mock.patch.object(ui_module.console_err, "print") as print_mock:
            warn("low contrast", quiet=True)
            print_mock.assert_not_called()
            warn("low contrast", quiet=False)
        print_mock.assert_called_once()
        self.assertIn("low contrast", print_mock.call_args.args[0])


class TestMainEntrypoint(unittest.TestCase):
    @mock.patch("reportforge.cli.main")
    def test_package_main_dispatches_to_cli_main(self, cli_main: mock.MagicMock) -> None:
        runpy.run_module("reportforge.__main__", run_name="__main__")
        cli_main.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
