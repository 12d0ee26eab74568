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

import base64
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PIL import Image

from reportforge.config import AssetSettings
from reportforge.errors import AssetError
from reportforge.render.assets import (
    AssetResolver,
    FileAssetFetcher,
    HttpAssetFetcher,
    decode_data_uri,
    normalize_image,
)
from tests.test_support import BlockingFetcher, FailingFetcher, StaticFetcher, png_bytes


class TestNormalizeImage(unittest.TestCase):
    def test_converts_transparent_png_to_jpeg(self) -> None:
        prepared = normalize_image(png_bytes(8, 6), max_px=400, convert=True)
        self.assertEqual(prepared.format, "JPEG")
        self.assertEqual((prepared.width_px, prepared.height_px), (8, 6))
        with Image.open(prepared.stream()) as image:
            self.assertEqual(image.format, "JPEG")
            self.assertEqual(image.mode, "RGB")

    def test_downscales_to_max_px(self) -> None:
        prepared = normalize_image(png_bytes(40, 30, mode="RGB"), max_px=20, convert=True)
        self.assertEqual((prepared.width_px, prepared.height_px), (20, 15))

    def test_passthrough_without_conversion(self) -> None:
        data = png_bytes(4, 4)
        prepared = normalize_image(data, max_px=None, convert=False)
        self.assertEqual(prepared.format, "PNG")
        self.assertEqual(prepared.data, data)

    def test_unreadable_data(self) -> None:
        with self.assertRaisesRegex(AssetError, "unreadable image"):
            normalize_image(b"not an image", max_px=None, convert=True)


class TestDataUri(unittest.TestCase):
    def test_decode(self) -> None:
        payload = base64.b64encode(b"abc").decode("ascii")
        self.assertEqual(decode_data_uri(f"data:image/png;base64,{payload}"), b"abc")

    def test_rejects_malformed(self) -> None:
        for uri in ("data:image/png;base64", "data:image/png,abc", "data:image/png;base64,@@@"):
            with self.subTest(uri=uri):
                with self.assertRaises(AssetError):
                    decode_data_uri(uri)


class TestAssetResolver(unittest.TestCase):
    def test_object_store_path_uses_fetcher(self) -> None:
        fetcher = StaticFetcher(png_bytes())
        resolver = AssetResolver(fetcher=fetcher)
        prepared = resolver.load("inspections/42/photo.png")
        self.assertEqual(fetcher.calls, ["inspections/42/photo.png"])
        self.assertEqual(prepared.format, "JPEG")

    def test_data_uri_and_bytes(self) -> None:
        data = png_bytes()
        resolver = AssetResolver()
        uri = "data:image/png;base64," + base64.b64encode(data).decode("ascii")
        self.assertEqual(resolver.load(uri).format, "PNG")
        self.assertEqual(resolver.load(data).data, data)

    def test_errors_are_asset_errors(self) -> None:
        cases = (
            (AssetResolver(), "", "empty"),
            (AssetResolver(), None, "empty"),
            (AssetResolver(), "logo", "logo asset is not configured"),
            (AssetResolver(), "photos/a.jpg", "no asset fetcher"),
            (AssetResolver(fetcher=FailingFetcher()), "photos/a.jpg", "object store unreachable"),
            (AssetResolver(fetcher=StaticFetcher(b"")), "photos/a.jpg", "empty asset"),
            (AssetResolver(fetcher=StaticFetcher(b"garbage")), "photos/a.jpg", "unreadable image"),
            (
                AssetResolver(AssetSettings(allow_remote=False)),
                "https://example.com/a.png",
                "remote assets are disabled",
            ),
        )
        for resolver, source, message in cases:
            with self.subTest(source=source, message=message):
                with self.assertRaisesRegex(AssetError, message):
                    resolver.load(source)

    def test_fetch_timeout(self) -> None:
        fetcher = BlockingFetcher()
        resolver = AssetResolver(AssetSettings(timeout_seconds=0.05), fetcher=fetcher)
        try:
            with self.assertRaisesRegex(AssetError, "timed out"):
                resolver.load("slow/photo.jpg")
        finally:
            fetcher.release.set()

    def test_remote_urls_use_http_fetcher(self) -> None:
        http_fetcher = StaticFetcher(png_bytes())
        object_store = StaticFetcher(png_bytes())
        resolver = AssetResolver(fetcher=object_store, http_fetcher=http_fetcher)
        resolver.load("https://cdn.example.com/a.png")
        self.assertEqual(http_fetcher.calls, ["https://cdn.example.com/a.png"])
        self.assertEqual(object_store.calls, [])

    def test_logo_from_bytes(self) -> None:
        data = png_bytes()
        resolver = AssetResolver(logo=data)
        self.assertTrue(resolver.has_logo)
        self.assertEqual(resolver.load("logo").data, data)

    def test_logo_from_settings_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "logo.png"
            path.write_bytes(png_bytes())
            resolver = AssetResolver(AssetSettings(logo_path=path))
        self.assertTrue(resolver.has_logo)

    def test_missing_logo_file_logs_warning(self) -> None:
        with self.assertLogs("reportforge.render.assets", level="WARNING"):
            resolver = AssetResolver(AssetSettings(logo_path=Path("/nonexistent/logo.png")))
        self.assertFalse(resolver.has_logo)


class TestHttpAssetFetcher(unittest.TestCase):
    def test_fetch_uses_timeout_and_raises_for_status(self) -> None:
        response = mock.Mock(content=b"img", headers={"content-type": "image/png"})
        with mock.patch("reportforge.render.assets.httpx.get", return_value=response) as get:
            data, content_type = HttpAssetFetcher(timeout=2.5).fetch("https://example.com/a.png")
        get.assert_called_once_with("https://example.com/a.png", timeout=2.5, follow_redirects=True)
        response.raise_for_status.assert_called_once_with()
        self.assertEqual((data, content_type), (b"img", "image/png"))


class TestFileAssetFetcher(unittest.TestCase):
    def test_reads_relative_paths(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "photos").mkdir()
            (root / "photos" / "a.png").write_bytes(b"png")
            fetcher = FileAssetFetcher(root)
            self.assertEqual(fetcher.fetch("photos/a.png"), (b"png", None))
            self.assertEqual(fetcher.fetch("/photos/a.png"), (b"png", None))

    def test_rejects_paths_outside_root(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            fetcher = FileAssetFetcher(Path(tmpdir) / "assets")
            with self.assertRaisesRegex(AssetError, "escapes"):
                fetcher.fetch("../secret.txt")


if __name__ == "__main__":
    unittest.main()
