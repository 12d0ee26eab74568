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

"""Image sources for image components.

A source identifier is one of:

* ``"logo"``: the static logo, loaded once when the resolver is built;
* an ``http(s)://`` URL, fetched with ``httpx``, or any other path, fetched through
  the object-store :class:`AssetFetcher` collaborator;
* inline bytes or a ``data:`` URI.

Fetched images are converted to JPEG and downscaled; every failure surfaces as
:class:`~reportforge.errors.AssetError`.
"""

from __future__ import annotations

import base64
import binascii
import concurrent.futures
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx
from PIL import Image, UnidentifiedImageError

from ..config import AssetSettings
from ..errors import AssetError
from .geometry import WHITE

logger = logging.getLogger(__name__)

LOGO_SENTINEL = "logo"
_EMBEDDABLE_FORMATS = frozenset({"JPEG", "PNG"})
_JPEG_QUALITY = 80


class AssetFetcher(Protocol):
    def fetch(self, path: str) -> tuple[bytes, str | None]: ...


@dataclass(frozen=True)
class HttpAssetFetcher:
    timeout: float = 5.0

    def fetch(self, path: str) -> tuple[bytes, str | None]:
        response = httpx.get(path, timeout=self.timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content, response.headers.get("content-type")


@dataclass(frozen=True)
class FileAssetFetcher:
    """Reads object-store paths from a local directory."""

    root: Path

    def fetch(self, path: str) -> tuple[bytes, str | None]:
        candidate = (self.root / path.lstrip("/")).resolve()
        if not candidate.is_relative_to(self.root.resolve()):
            raise AssetError(f"asset path escapes {self.root}: {path}")
        return candidate.read_bytes(), None


@dataclass(frozen=True)
class PreparedImage:
    data: bytes
    format: str
    width_px: int
    height_px: int

    def stream(self) -> io.BytesIO:
        return io.BytesIO(self.data)


def decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:"):
        raise AssetError("malformed data URI")
    if not header.endswith(";base64"):
        raise AssetError("only base64 data URIs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AssetError("data URI payload is not valid base64") from exc


def normalize_image(data: bytes, *, max_px: int | None, convert: bool) -> PreparedImage:
    """Decode ``data`` and return an image fpdf2 can embed.

    With ``convert`` set, anything other than an in-bounds JPEG is re-encoded as
    JPEG (transparency flattened onto white) and downscaled so its longest edge is
    at most ``max_px``.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            source_format = (image.format or "").upper()
            width, height = image.size
            oversized = max_px is not None and max(width, height) > max_px
            if not convert and source_format in _EMBEDDABLE_FORMATS:
                return PreparedImage(data, source_format, width, height)
            if source_format == "JPEG" and not oversized:
                return PreparedImage(data, source_format, width, height)
            rgb = _flatten(image)
            if oversized and max_px is not None:
                rgb.thumbnail((max_px, max_px))
            out = io.BytesIO()
            rgb.save(out, format="JPEG", quality=_JPEG_QUALITY)
            return PreparedImage(out.getvalue(), "JPEG", rgb.width, rgb.height)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise AssetError(f"unreadable image data: {exc}") from exc


def _flatten(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, WHITE)
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return image.convert("RGB")


class AssetResolver:
    def __init__(
        self,
        settings: AssetSettings | None = None,
        *,
        fetcher: AssetFetcher | None = None,
        http_fetcher: AssetFetcher | None = None,
        logo: bytes | PreparedImage | None = None,
    ) -> None:
        self._settings = settings or AssetSettings()
        self._fetcher = fetcher
        self._http_fetcher = http_fetcher or HttpAssetFetcher(timeout=self._settings.timeout_seconds)
        self._logo = logo if isinstance(logo, PreparedImage) else load_logo(self._settings, logo)

    @property
    def has_logo(self) -> bool:
        return self._logo is not None

    def load(self, source: object) -> PreparedImage:
        if isinstance(source, (bytes, bytearray)):
            return normalize_image(bytes(source), max_px=None, convert=False)
        if not isinstance(source, str) or not source.strip():
            raise AssetError("image source is empty")
        source = source.strip()
        if source == LOGO_SENTINEL:
            if self._logo is None:
                raise AssetError("logo asset is not configured")
            return self._logo
        if source.startswith("data:"):
            return normalize_image(decode_data_uri(source), max_px=None, convert=False)
        if source.startswith(("http://", "https://")):
            if not self._settings.allow_remote:
                raise AssetError(f"remote assets are disabled: {source}")
            data = self._fetch(self._http_fetcher, source)
        else:
            if self._fetcher is None:
                raise AssetError(f"no asset fetcher configured for {source}")
            data = self._fetch(self._fetcher, source)
        return normalize_image(data, max_px=self._settings.max_image_px, convert=True)

    def _fetch(self, fetcher: AssetFetcher, path: str) -> bytes:
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(fetcher.fetch, path)
            data, content_type = future.result(timeout=self._settings.timeout_seconds)
        except concurrent.futures.TimeoutError as exc:
            raise AssetError(f"timed out fetching {path}") from exc
        except AssetError:
            raise
        except Exception as exc:
            raise AssetError(f"could not fetch {path}: {exc}") from exc
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        if not data:
            raise AssetError(f"empty asset: {path}")
        logger.debug("Fetched %s (%s, %d bytes)", path, content_type or "unknown type", len(data))
        return data


def load_logo(settings: AssetSettings, data: bytes | None = None) -> PreparedImage | None:
    """Prepare the static logo from ``data``, or from ``settings.logo_path``."""
    if data is None:
        data = _read_logo(settings.logo_path)
    if data is None:
        return None
    try:
        return normalize_image(data, max_px=None, convert=False)
    except AssetError as exc:
        logger.warning("Could not load logo: %s", exc)
        return None


def _read_logo(path: Path | None) -> bytes | None:
    if path is None:
        return None
    try:
        return path.read_bytes()
    except OSError as exc:
        logger.warning("Could not load logo %s: %s", path, exc)
        return None


__all__ = [
    "AssetFetcher",
    "AssetResolver",
    "FileAssetFetcher",
    "HttpAssetFetcher",
    "LOGO_SENTINEL",
    "PreparedImage",
    "decode_data_uri",
    "load_logo",
    "normalize_image",
]
