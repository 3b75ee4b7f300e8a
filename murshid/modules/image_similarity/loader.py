# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Image Loading
The only I/O of a matching run. The engine never fetches images itself;
it is handed an ImageLoader. Decoding runs in a worker thread so one
large photo does not stall the event loop.

HttpImageLoader: http(s) URLs via httpx, plus file:// and plain local
                 paths for fixtures and locally mirrored uploads.

Loaders never raise for a bad image: a failed fetch or decode is logged
and returned as None, which the engine scores as 0 for that image.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import httpx
import numpy as np

from murshid.utils.image_utils import bytes_to_rgb, load_image_rgb
from murshid.utils.logger import get_logger

log = get_logger(__name__)


class ImageLoader(ABC):
    """Asynchronous image-load capability supplied by the host."""

    @abstractmethod
    async def load(self, url: str) -> Optional[np.ndarray]:
        """Return the decoded RGB image, or None if it cannot be loaded."""


class HttpImageLoader(ImageLoader):
    """
    Fetch report images over HTTP(S) with a size cap, or read them from disk.
    One AsyncClient is shared per loader; call aclose() on shutdown.
    """

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        max_bytes: int = 5 * 1024 * 1024,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds, follow_redirects=True
        )
        self._max_bytes = max_bytes

    async def load(self, url: str) -> Optional[np.ndarray]:
        parsed = urlparse(url)
        try:
            if parsed.scheme in ("http", "https"):
                data = await self._fetch(url)
                return await asyncio.to_thread(bytes_to_rgb, data)
            if parsed.scheme == "file":
                return await asyncio.to_thread(load_image_rgb, Path(unquote(parsed.path)))
            if parsed.scheme == "":
                return await asyncio.to_thread(load_image_rgb, Path(url))
            log.warning("image_scheme_unsupported", url=url, scheme=parsed.scheme)
            return None
        except (httpx.HTTPError, ValueError, OSError) as e:
            log.warning("image_load_failed", url=url, error=str(e))
            return None

    async def _fetch(self, url: str) -> bytes:
        resp = await self._client.get(url)
        resp.raise_for_status()
        if len(resp.content) > self._max_bytes:
            raise ValueError(
                f"Image exceeds {self._max_bytes} bytes ({len(resp.content)})"
            )
        return resp.content

    async def aclose(self) -> None:
        await self._client.aclose()
