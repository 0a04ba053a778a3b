# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
Artwork for the OS media session.

Best-effort: a request for the URL already in flight is ignored, a request
for a new URL supersedes the old one, and failures are only logged.  The
finished image reaches the native side as a JPEG data URI through
``NativeBridge.notify_artwork``.
"""

import asyncio
import base64
import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO

import aiohttp
from PIL import Image, UnidentifiedImageError

from .lib.config import cfg
from .lib.fetcher import DedupFetcher

log = logging.getLogger(__name__)

MAX_ARTWORK_SIZE = 500 * 1024  # 500 KB limit for JPEG output
ARTWORK_CACHE_SIZE = 100       # number of artworks to cache
ARTWORK_TIMEOUT = 10           # seconds

# Shared thread pool for CPU-bound image processing
_artwork_executor = ThreadPoolExecutor(max_workers=2)


class ArtworkCache:
    """Image URL → encoded data URI, least recently delivered evicted first.

    *max_size* defaults to ``artwork.cache_size`` from the config.
    """

    def __init__(self, max_size: int | None = None):
        if max_size is None:
            max_size = int(cfg("artwork", "cache_size", default=ARTWORK_CACHE_SIZE))
        self.max_size = max(1, max_size)
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, str] = OrderedDict()

    def lookup(self, url: str) -> str | None:
        data_uri = self._entries.get(url)
        if data_uri is None:
            self.misses += 1
            return None
        self.hits += 1
        self._entries.move_to_end(url)
        return data_uri

    def store(self, url: str, data_uri: str):
        self._entries[url] = data_uri
        self._entries.move_to_end(url)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("Artwork cache full, evicted %s", evicted)

    def __contains__(self, url: str):
        return url in self._entries

    def __len__(self):
        return len(self._entries)


def process_image(image_bytes: bytes, max_size: int = MAX_ARTWORK_SIZE) -> str:
    """Re-encode raw image bytes as a JPEG data URI.

    Runs in a thread pool (CPU-bound).  Raises ``ValueError`` for data that
    is not an image.
    """
    try:
        image = Image.open(BytesIO(image_bytes))
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGB")

        buf = BytesIO()
        image.save(buf, "JPEG", quality=85)
        if buf.tell() > max_size:
            buf = BytesIO()
            image.save(buf, "JPEG", quality=60)
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"not an image: {e}") from e

    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


class ArtworkRetriever:
    """Fetches now-playing artwork and hands it to the native bridge.

    *image_url(item)* maps a library item to its image URL (or None); how
    that URL is built is up to the caller.
    """

    def __init__(self, native, image_url=None,
                 session: aiohttp.ClientSession | None = None):
        self._native = native
        self._image_url = image_url
        self._session = session
        self._owns_session = session is None
        self._timeout = float(cfg("artwork", "timeout", default=ARTWORK_TIMEOUT))
        self._max_size = int(cfg("artwork", "max_size", default=MAX_ARTWORK_SIZE))
        self.cache = ArtworkCache()
        self._fetcher = DedupFetcher(self._deliver, name="artwork")

    @property
    def pending_url(self) -> str | None:
        return self._fetcher.pending_key

    def fetch_for_item(self, item: dict):
        """Start retrieval for a library item; no-op without a usable URL."""
        if not item or self._image_url is None:
            return None
        url = self._image_url(item)
        if not url:
            log.debug("No artwork URL for %s", item.get("Name", "item"))
            return None
        return self.request(url)

    def request(self, url: str):
        return self._fetcher.request(url, lambda token: self._download(url, token))

    def cancel(self):
        self._fetcher.cancel()

    async def close(self):
        self.cancel()
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _deliver(self, url: str, data_uri: str):
        log.info("Artwork ready for %s", url)
        self._native.notify_artwork(data_uri)

    async def _download(self, url: str, token) -> str:
        cached = self.cache.lookup(url)
        if cached is not None:
            log.debug("Artwork cache hit for %s", url)
            return cached

        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        log.debug("Fetching artwork: %s", url)
        async with self._session.get(
            url, timeout=aiohttp.ClientTimeout(total=self._timeout)
        ) as resp:
            resp.raise_for_status()
            image_bytes = await resp.read()
        token.raise_if_cancelled()

        if not image_bytes:
            raise ValueError("artwork URL returned 0 bytes")

        loop = asyncio.get_running_loop()
        data_uri = await loop.run_in_executor(
            _artwork_executor, process_image, image_bytes, self._max_size)
        token.raise_if_cancelled()

        self.cache.store(url, data_uri)
        log.debug("Cached artwork for %s (%d cached, %d hits, %d misses)",
                  url, len(self.cache), self.cache.hits, self.cache.misses)
        return data_uri
